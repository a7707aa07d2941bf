import pytest

from conftest import MASTER_URL, MEDIA_URL, MASTER_TEXT, MEDIA_TEXT, BYTERANGE_TEXT
from hlsErrors import MalformedByteRange, MissingContext, InvalidUrl, IncompleteEntry, AmbiguousFileType
from hlsEntries import EntryType
from hlsPlaylist import FileType, ParsingState, Playlist, advance, isAbsoluteUrl, loads, resolveUrl
from hlsValues import ByteRange


####################################
#
# URL resolution
#
@pytest.mark.parametrize('context, reference, expected', [
	(MEDIA_URL, 'segment1.ts', 'http://host/path/segment1.ts'),
	(MEDIA_URL, '/other/seg.ts', 'http://host/other/seg.ts'),
	('https://host/path/playlist.m3u8', '//cdn.example.com/seg.ts', 'https://cdn.example.com/seg.ts'),
	(MEDIA_URL, 'http://cdn.example.com/seg.ts', 'http://cdn.example.com/seg.ts'),
	(None, 'http://cdn.example.com/seg.ts', 'http://cdn.example.com/seg.ts'),
])
def test_resolve_url(context, reference, expected):
	assert resolveUrl(context, reference) == expected


def test_resolve_url_needs_context():
	with pytest.raises(MissingContext):
		resolveUrl(None, 'segment1.ts')


@pytest.mark.parametrize('context, reference', [
	('http://host/a.m3u8', 'http://[::1/seg.ts'),
	('playlists/a.m3u8', 'seg.ts'),
])
def test_resolve_url_invalid(context, reference):
	with pytest.raises(InvalidUrl):
		resolveUrl(context, reference)


def test_is_absolute_url():
	assert isAbsoluteUrl('http://host/a.ts')
	assert isAbsoluteUrl('file:///tmp/a.ts')
	assert not isAbsoluteUrl('a.ts')
	assert not isAbsoluteUrl('http://host/a b.ts')
	assert not isAbsoluteUrl('http://host]x')


####################################
#
# State machine
#
def test_advance_through_a_segment():
	state = ParsingState()
	assert not state.expectUrl

	state, finished, diagnostic = advance(state, '#EXTINF:10.0,', MEDIA_URL)
	assert state.expectUrl
	assert finished == [] and diagnostic is None

	before = state
	state, finished, _ = advance(state, '#EXT-X-BYTERANGE:100@0', MEDIA_URL)
	assert state is not before
	assert before.byteRangeOffset == 0
	assert state.pending is before.pending
	assert state.expectUrl
	assert state.byteRangeOffset == 100
	assert state.pending.payload.byteRange == ByteRange(0, 99)
	assert finished == []

	state, finished, _ = advance(state, 'seg.ts', MEDIA_URL)
	assert not state.expectUrl
	assert state.byteRangeOffset == 100
	assert [entry.url for entry in finished] == ['http://host/path/seg.ts']


def test_advance_skips_blank_and_comment_lines():
	state, _, _ = advance(ParsingState(), '#EXTINF:10.0,', MEDIA_URL)
	for line in ('', '   ', '## note'):
		nextState, finished, diagnostic = advance(state, line, MEDIA_URL)
		assert nextState is state
		assert finished == [] and diagnostic is None


def test_blank_and_comment_lines_are_not_urls():
	playlist = loads('#EXTM3U\n#EXTINF:10.0,\n\n## cut here\nseg.ts\n', MEDIA_URL)
	assert [entry.url for entry in playlist.mediaSegments] == ['http://host/path/seg.ts']
	assert playlist.diagnostics == []


def test_advance_reports_stray_lines():
	state = ParsingState()
	nextState, finished, diagnostic = advance(state, 'not a tag', MEDIA_URL)
	assert nextState is state
	assert finished == []
	assert diagnostic == 'Line is not a valid entry: not a tag'


def test_byte_range_needs_a_media_segment():
	with pytest.raises(MalformedByteRange):
		advance(ParsingState(), '#EXT-X-BYTERANGE:100', MEDIA_URL)

	state, _, _ = advance(ParsingState(), '#EXT-X-STREAM-INF:BANDWIDTH=1', MASTER_URL)
	with pytest.raises(MalformedByteRange):
		advance(state, '#EXT-X-BYTERANGE:100', MASTER_URL)


def test_bad_byte_range_keeps_line():
	state, _, _ = advance(ParsingState(), '#EXTINF:10.0,', MEDIA_URL)
	with pytest.raises(MalformedByteRange) as excinfo:
		advance(state, '#EXT-X-BYTERANGE:0@10', MEDIA_URL)
	assert excinfo.value.line == '#EXT-X-BYTERANGE:0@10'


####################################
#
# Playlist
#
def test_master_playlist():
	playlist = loads(MASTER_TEXT, MASTER_URL)
	assert playlist.isParsed()
	assert playlist.isMaster() and not playlist.isMedia()
	assert playlist.fileType is FileType.MASTER_PLAYLIST
	assert [entry.type for entry in playlist.entries] == [
		EntryType.EXTM3U, EntryType.EXT_X_VERSION, EntryType.EXT_X_MEDIA,
		EntryType.EXT_X_STREAM_INF, EntryType.EXT_X_STREAM_INF]
	assert [entry.url for entry in playlist.variantStreams] == [
		'http://host/path/low/index.m3u8', 'http://cdn.example.com/high/index.m3u8']
	assert [entry.payload.bandwidth for entry in playlist.variantStreams] == [1280000, 2560000]
	assert len(playlist.mediaGroups) == 1
	assert playlist.mediaGroups[0].payload.uri == 'eng.m3u8'
	assert playlist.mediaSegments == []
	assert playlist.diagnostics == []


def test_media_playlist():
	playlist = Playlist(MEDIA_TEXT, MEDIA_URL)
	assert not playlist.isParsed()
	assert playlist.entries == []

	playlist.parse()
	assert playlist.isMedia()
	assert len(playlist.entries) == 7
	assert [entry.url for entry in playlist.mediaSegments] == [
		'http://host/path/segment1.ts', 'http://host/path/segment2.ts']
	assert [entry.payload.duration for entry in playlist.mediaSegments] == [10.0, 9.5]
	assert playlist.variantStreams == [] and playlist.mediaGroups == []


def test_media_playlist_from_bytes_with_crlf():
	data = MEDIA_TEXT.replace('\n', '\r\n').encode('utf-8')
	playlist = Playlist(data, MEDIA_URL, parseAfterReading=True)
	assert len(playlist.mediaSegments) == 2
	assert playlist.mediaSegments[1].url == 'http://host/path/segment2.ts'


def test_byte_ranges_follow_each_other():
	playlist = loads(BYTERANGE_TEXT, 'http://host/video/index.m3u8')
	ranges = [entry.payload.byteRange for entry in playlist.mediaSegments]
	assert ranges == [ByteRange(0, 76241), ByteRange(76242, 158353), ByteRange(500000, 500999)]
	assert ranges[1].start == ranges[0].end + 1


def test_parse_twice_is_a_no_op():
	playlist = loads(MEDIA_TEXT, MEDIA_URL)
	entries = list(playlist.entries)
	playlist.parse()
	assert playlist.entries == entries
	assert len(playlist.mediaSegments) == 2


def test_absolute_urls_need_no_context():
	playlist = loads('#EXTM3U\n#EXTINF:1.0,\nhttp://host/seg.ts\n')
	assert playlist.mediaSegments[0].url == 'http://host/seg.ts'


def test_relative_url_without_context():
	playlist = Playlist('#EXTM3U\n#EXTINF:1.0,\nseg.ts\n')
	with pytest.raises(MissingContext) as excinfo:
		playlist.parse()
	assert excinfo.value.lineNumber == 3


def test_unresolvable_url():
	with pytest.raises(InvalidUrl):
		loads('#EXTINF:1.0,\nhttp://[::1/seg.ts\n', MEDIA_URL)


def test_stray_lines_are_diagnostics():
	playlist = loads('#EXTM3U\nthis is not a tag\n#EXT-X-ENDLIST\n', MEDIA_URL)
	assert playlist.isParsed()
	assert [entry.type for entry in playlist.entries] == [EntryType.EXTM3U, EntryType.EXT_X_ENDLIST]
	assert playlist.diagnostics == [(2, 'Line is not a valid entry: this is not a tag')]
	assert playlist.fileType is None


def test_segment_then_stream_is_ambiguous():
	text = '#EXTINF:10.0,\nseg.ts\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlow.m3u8\n'
	playlist = Playlist(text, MEDIA_URL)
	with pytest.raises(AmbiguousFileType) as excinfo:
		playlist.parse()
	assert excinfo.value.lineNumber == 4
	assert excinfo.value.line == '#EXT-X-STREAM-INF:BANDWIDTH=1'
	# nothing of a failed parse is kept
	assert not playlist.isParsed()
	assert playlist.entries == [] and playlist.mediaSegments == []
	assert playlist.fileType is None


def test_group_then_segment_is_ambiguous():
	text = '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="a"\n#EXTINF:1.0,\nseg.ts\n'
	with pytest.raises(AmbiguousFileType):
		loads(text, MEDIA_URL)


def test_entry_without_url_at_end():
	with pytest.raises(IncompleteEntry) as excinfo:
		loads('#EXTM3U\n#EXTINF:10.0,\n#EXT-X-DISCONTINUITY\n', MEDIA_URL)
	assert excinfo.value.line == '#EXTINF:10.0,'


def test_entries_between_tag_and_url_are_kept():
	playlist = loads('#EXTINF:10.0,\n#EXT-X-DISCONTINUITY\nseg.ts\n', MEDIA_URL)
	assert [entry.type for entry in playlist.entries] == [EntryType.EXT_X_DISCONTINUITY, EntryType.EXTINF]
	assert playlist.entries[0].payload is None
	assert playlist.mediaSegments[0].url == 'http://host/path/seg.ts'


def test_second_extinf_before_url_stays_generic():
	playlist = loads('#EXTINF:10.0,\n#EXTINF:5.0,\nseg.ts\n', MEDIA_URL)
	assert [entry.type for entry in playlist.entries] == [EntryType.EXTINF, EntryType.EXTINF]
	assert playlist.entries[0].payload is None
	assert playlist.entries[0].values == ['5.0']
	assert len(playlist.mediaSegments) == 1
	assert playlist.mediaSegments[0].payload.duration == 10.0


####################################
#
# Trailer and serialization
#
def test_trailer_is_appended_to_every_url():
	playlist = loads(MASTER_TEXT, MASTER_URL)
	assert playlist.addTrailerToEachURL('?token=abc')
	assert [entry.url for entry in playlist.variantStreams] == [
		'http://host/path/low/index.m3u8?token=abc', 'http://cdn.example.com/high/index.m3u8?token=abc']
	# media groups have no URL of their own
	assert playlist.mediaGroups[0].payload.uri == 'eng.m3u8'


@pytest.mark.parametrize('trailer', [' bad', ']x'])
def test_trailer_that_breaks_a_url(trailer):
	playlist = loads('#EXTINF:1.0,\nhttp://host\n')
	assert not playlist.addTrailerToEachURL(trailer)
	assert playlist.mediaSegments[0].url == 'http://host'


def test_serialize_media_playlist():
	playlist = loads(MEDIA_TEXT, MEDIA_URL)
	assert playlist.serialize() == (
		'#EXTM3U\n'
		'#EXT-X-VERSION:4,\n'
		'#EXT-X-TARGETDURATION:10,\n'
		'#EXT-X-MEDIA-SEQUENCE:0,\n'
		'#EXTINF:10.0,\n'
		'http://host/path/segment1.ts\n'
		'#EXTINF:9.5,\n'
		'http://host/path/segment2.ts\n'
		'#EXT-X-ENDLIST\n')


@pytest.mark.parametrize('duration', ['0.00001', '12345678901234567890'])
def test_extreme_durations_parse_back(duration):
	playlist = loads('#EXTM3U\n#EXTINF:%s,\nseg.ts\n' % duration, MEDIA_URL)
	text = playlist.serialize()
	assert 'e' not in text.splitlines()[1]

	again = loads(text)
	assert again.diagnostics == []
	assert len(again.mediaSegments) == 1
	assert again.mediaSegments[0].payload.duration == float(duration)
	assert again.mediaSegments[0].url == 'http://host/path/seg.ts'


def test_serialized_playlists_parse_back():
	for text, context in ((MASTER_TEXT, MASTER_URL), (MEDIA_TEXT, MEDIA_URL), (BYTERANGE_TEXT, MEDIA_URL)):
		playlist = loads(text, context)
		again = loads(playlist.serialize())
		assert again.fileType is playlist.fileType
		assert [entry.type for entry in again.entries] == [entry.type for entry in playlist.entries]
		assert [entry.url for entry in again.entries] == [entry.url for entry in playlist.entries]
		assert ([entry.payload.byteRange for entry in again.mediaSegments] ==
		        [entry.payload.byteRange for entry in playlist.mediaSegments])
