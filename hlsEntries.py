####################################
#
# Entries of an HLS m3u8 playlist
#
# An entry is one tagged line of the playlist (#TAG or #TAG:VALUES).
# This module holds the closed tag and attribute vocabularies, the
# attribute-list decoder and the builders that turn a raw line into an
# Entry.  Every Entry carries its tag type and the raw value tokens;
# media segments, variant streams and media groups additionally carry
# a typed payload built from those tokens.
#
####################################

import logging
import re
from enum import Enum

from hlsErrors import ParseError, UnknownTag, UnknownAttributeName, UnknownAttributeForEntry, MalformedAttribute, InvalidDuration
from hlsValues import MEDIA_DURATION_NONE, parseUnsignedInt, parseDuration, formatDuration, parseResolution, parseCodecs

ENTRY_MARKER = '#'
ENTRY_SPLIT_CHAR = ':'
VALUES_SPLIT_CHAR = ','
ATTRIBUTES_SPLIT_CHAR = '='
QUOTE_CHAR = '"'

ENTRY_REGEX = re.compile(r'#([A-Z0-9-]+)(:[A-Za-z0-9,"._ =@-]+)?')
COMMENT_REGEX = re.compile(r'##(.+)?')
CSV_ATTRIBUTES_LIST_REGEX = re.compile(r'\s*(.+?)\s*=((?:".*?")|.*?)(?:,|$)')


def tokenToEnumName(token):
	# '#EXT-X-STREAM-INF' -> 'EXT_X_STREAM_INF'
	return token.strip().lstrip(ENTRY_MARKER).replace('-', '_')


def unwrap(s, c):
	return s.strip().strip(c)


def couldBeEntry(line):
	return ENTRY_REGEX.fullmatch(line) is not None


def isComment(line):
	return COMMENT_REGEX.fullmatch(line) is not None


class EntryType(Enum):
	EXTINF = 'EXTINF'
	EXT_X_STREAM_INF = 'EXT-X-STREAM-INF'
	EXT_X_MEDIA = 'EXT-X-MEDIA'
	EXT_X_BYTERANGE = 'EXT-X-BYTERANGE'
	EXTM3U = 'EXTM3U'
	EXT_X_VERSION = 'EXT-X-VERSION'
	EXT_X_TARGETDURATION = 'EXT-X-TARGETDURATION'
	EXT_X_PLAYLIST_TYPE = 'EXT-X-PLAYLIST-TYPE'
	EXT_X_ENDLIST = 'EXT-X-ENDLIST'
	EXT_X_MAP = 'EXT-X-MAP'
	EXT_X_MEDIA_SEQUENCE = 'EXT-X-MEDIA-SEQUENCE'
	EXT_X_DISCONTINUITY = 'EXT-X-DISCONTINUITY'
	EXT_X_DISCONTINUITY_SEQUENCE = 'EXT-X-DISCONTINUITY-SEQUENCE'
	EXT_X_INDEPENDENT_SEGMENTS = 'EXT-X-INDEPENDENT-SEGMENTS'
	EXT_X_I_FRAMES_ONLY = 'EXT-X-I-FRAMES-ONLY'
	EXT_X_ALLOW_CACHE = 'EXT-X-ALLOW-CACHE'

	@classmethod
	def fromToken(cls, token):
		try:
			return cls[tokenToEnumName(token)]
		except KeyError:
			raise UnknownTag('Unknown entry type token %r' % token)

	def expectsUrl(self):
		return self in (EntryType.EXTINF, EntryType.EXT_X_STREAM_INF)

	def __str__(self):
		return self.value


class AttributeType(Enum):
	PROGRAM_ID = 'PROGRAM-ID'
	BANDWIDTH = 'BANDWIDTH'
	CODECS = 'CODECS'
	RESOLUTION = 'RESOLUTION'
	TYPE = 'TYPE'
	GROUP_ID = 'GROUP-ID'
	LANGUAGE = 'LANGUAGE'
	URI = 'URI'
	NAME = 'NAME'
	AUDIO = 'AUDIO'
	VIDEO = 'VIDEO'
	SUBTITLES = 'SUBTITLES'

	@classmethod
	def fromToken(cls, token):
		try:
			return cls[tokenToEnumName(token)]
		except KeyError:
			raise UnknownAttributeName('Unknown attribute type token %r' % token)

	def isString(self):
		return self in STRING_ATTRIBUTES

	def __str__(self):
		return self.value


STRING_ATTRIBUTES = frozenset([
	AttributeType.URI,
	AttributeType.LANGUAGE,
	AttributeType.CODECS,
	AttributeType.AUDIO,
	AttributeType.VIDEO,
	AttributeType.SUBTITLES,
	AttributeType.NAME,
	AttributeType.GROUP_ID,
])


class Attribute(object):
	def __init__(self, type, raw):
		self.type = type
		self.raw = raw

	@classmethod
	def fromToken(cls, token):
		parsedAttribute = token.split(ATTRIBUTES_SPLIT_CHAR)
		if len(parsedAttribute) != 2:
			raise MalformedAttribute('Malformed attribute %r' % token)
		return cls(AttributeType.fromToken(parsedAttribute[0]), parsedAttribute[1].strip())

	@property
	def value(self):
		if self.type.isString():
			return unwrap(self.raw, QUOTE_CHAR)
		return self.raw

	def __str__(self):
		return '%s%s%s' % (self.type, ATTRIBUTES_SPLIT_CHAR, self.raw)


def decodeValues(rawValues):
	"""Split the part behind a tag's ':' into its value tokens.

	A value part without any comma is a single bare value.  Otherwise it
	is read as an attribute list, where commas inside double quotes do not
	split.  A value part that has a comma but no attribute in it (such as
	the '10.0,' of an EXTINF) is again one bare value, trailing comma
	removed.
	"""
	if VALUES_SPLIT_CHAR not in rawValues:
		return [rawValues]
	strip = VALUES_SPLIT_CHAR + ' \t'
	values = [m.group().strip(strip) for m in CSV_ATTRIBUTES_LIST_REGEX.finditer(rawValues)]
	if not values:
		values.append(rawValues.strip(strip))
	return values


def decodeAttributes(values):
	return [Attribute.fromToken(v) for v in values]


def quoted(s):
	return QUOTE_CHAR + s + QUOTE_CHAR


####################################
#
# Entry payloads
#
class GroupType(Enum):
	AUDIO = 'AUDIO'
	VIDEO = 'VIDEO'
	SUBTITLES = 'SUBTITLES'

	@classmethod
	def fromToken(cls, token):
		try:
			return cls(token.strip())
		except ValueError:
			raise MalformedAttribute('Invalid group type value %r' % token)


class MediaSegment(object):
	def __init__(self, duration=MEDIA_DURATION_NONE, byteRange=None, url=None):
		self.duration = duration
		self.byteRange = byteRange
		# absolute once the assembler resolved the line after #EXTINF
		self.url = url


class VariantStream(object):
	def __init__(self):
		self.programId = None
		self.bandwidth = None
		self.codecs = []
		self.resolution = None
		self.audioGroupId = None
		self.videoGroupId = None
		self.subtitlesGroupId = None
		self.name = None
		self.url = None

	def attributes(self):
		attributes = []
		if self.programId is not None:
			attributes.append('PROGRAM-ID=%d' % self.programId)
		if self.bandwidth is not None:
			attributes.append('BANDWIDTH=%d' % self.bandwidth)
		if self.codecs:
			attributes.append('CODECS=' + quoted(VALUES_SPLIT_CHAR.join(str(c) for c in self.codecs)))
		if self.resolution is not None:
			attributes.append('RESOLUTION=%s' % (self.resolution,))
		if self.audioGroupId is not None:
			attributes.append('AUDIO=' + quoted(self.audioGroupId))
		if self.videoGroupId is not None:
			attributes.append('VIDEO=' + quoted(self.videoGroupId))
		if self.subtitlesGroupId is not None:
			attributes.append('SUBTITLES=' + quoted(self.subtitlesGroupId))
		if self.name is not None:
			attributes.append('NAME=' + quoted(self.name))
		return attributes


class MediaGroup(object):
	# URI stays as written: a group is not resolved against the playlist context
	def __init__(self):
		self.groupType = None
		self.groupId = None
		self.name = None
		self.language = None
		self.uri = None

	def attributes(self):
		attributes = []
		if self.groupType is not None:
			attributes.append('TYPE=' + self.groupType.value)
		if self.groupId is not None:
			attributes.append('GROUP-ID=' + quoted(self.groupId))
		if self.name is not None:
			attributes.append('NAME=' + quoted(self.name))
		if self.language is not None:
			attributes.append('LANGUAGE=' + quoted(self.language))
		if self.uri is not None:
			attributes.append('URI=' + quoted(self.uri))
		return attributes


def buildMediaSegment(values):
	if len(values) != 1:
		raise InvalidDuration('Media segment entry should have exactly one value, got %d' % len(values))
	return MediaSegment(parseDuration(values[0]))


def buildVariantStream(attributes):
	stream = VariantStream()
	for a in attributes:
		if a.type is AttributeType.PROGRAM_ID:
			stream.programId = parseUnsignedInt(a.value, str(a.type))
		elif a.type is AttributeType.BANDWIDTH:
			stream.bandwidth = parseUnsignedInt(a.value, str(a.type))
		elif a.type is AttributeType.CODECS:
			stream.codecs = parseCodecs(a.value)
		elif a.type is AttributeType.RESOLUTION:
			stream.resolution = parseResolution(a.value)
		elif a.type is AttributeType.AUDIO:
			stream.audioGroupId = a.value
		elif a.type is AttributeType.VIDEO:
			stream.videoGroupId = a.value
		elif a.type is AttributeType.SUBTITLES:
			stream.subtitlesGroupId = a.value
		elif a.type is AttributeType.NAME:
			stream.name = a.value
		else:
			raise UnknownAttributeForEntry('Attribute %s is not allowed on %s' % (a.type, EntryType.EXT_X_STREAM_INF))
	return stream


def buildMediaGroup(attributes):
	group = MediaGroup()
	for a in attributes:
		if a.type is AttributeType.TYPE:
			group.groupType = GroupType.fromToken(a.value)
		elif a.type is AttributeType.GROUP_ID:
			group.groupId = a.value
		elif a.type is AttributeType.NAME:
			group.name = a.value
		elif a.type is AttributeType.LANGUAGE:
			group.language = a.value
		elif a.type is AttributeType.URI:
			group.uri = a.value
		else:
			raise UnknownAttributeForEntry('Attribute %s is not allowed on %s' % (a.type, EntryType.EXT_X_MEDIA))
	return group


def buildPayload(entryType, values):
	if entryType is EntryType.EXTINF:
		return buildMediaSegment(values)
	if entryType is EntryType.EXT_X_STREAM_INF:
		return buildVariantStream(decodeAttributes(values))
	if entryType is EntryType.EXT_X_MEDIA:
		return buildMediaGroup(decodeAttributes(values))
	return None


####################################
#
# The Entry itself
#
class Entry(object):
	def __init__(self, type, values=None, payload=None, line=None):
		self.type = type
		self.values = list(values or [])
		self.payload = payload
		self.line = line

	def isMediaSegment(self):
		return isinstance(self.payload, MediaSegment)

	def isVariantStream(self):
		return isinstance(self.payload, VariantStream)

	def isMediaGroup(self):
		return isinstance(self.payload, MediaGroup)

	def hasUrl(self):
		return self.isMediaSegment() or self.isVariantStream()

	@property
	def url(self):
		if self.hasUrl():
			return self.payload.url
		return None

	@url.setter
	def url(self, url):
		if not self.hasUrl():
			raise AttributeError('%s entry does not carry a URL' % self.type)
		self.payload.url = url

	def __repr__(self):
		return 'Entry(%s, %r)' % (self.type.name, self.values)

	def __str__(self):
		if self.isMediaSegment():
			lines = ['%s%s%s%s%s' % (ENTRY_MARKER, EntryType.EXTINF, ENTRY_SPLIT_CHAR, formatDuration(self.payload.duration), VALUES_SPLIT_CHAR)]
			if self.payload.byteRange is not None:
				lines.append('%s%s%s%s' % (ENTRY_MARKER, EntryType.EXT_X_BYTERANGE, ENTRY_SPLIT_CHAR, self.payload.byteRange))
		elif self.isVariantStream() or self.isMediaGroup():
			lines = ['%s%s%s%s' % (ENTRY_MARKER, self.type, ENTRY_SPLIT_CHAR, VALUES_SPLIT_CHAR.join(self.payload.attributes()))]
		else:
			entry = ENTRY_MARKER + str(self.type)
			if self.values:
				entry += ENTRY_SPLIT_CHAR + ''.join(v + VALUES_SPLIT_CHAR for v in self.values)
			return entry
		if self.url is not None:
			lines.append(self.url)
		return '\n'.join(lines)


def parseLine(line, typed=True):
	"""Build the Entry for one playlist line.

	With typed=False the entry is kept generic whatever its tag, i.e. only
	its type and raw value tokens are read.
	"""
	text = line.strip()
	if not couldBeEntry(text):
		raise ParseError('Failed to parse malformed entry', line)
	tagToken, sep, rawValues = text.partition(ENTRY_SPLIT_CHAR)
	try:
		entryType = EntryType.fromToken(tagToken)
		values = decodeValues(rawValues) if sep else []
		payload = buildPayload(entryType, values) if typed else None
	except ParseError as err:
		if err.line is None:
			err.line = text
		raise
	logging.debug("++---------->> Parsed %s entry with values %s", entryType, values)
	return Entry(entryType, values, payload, text)
