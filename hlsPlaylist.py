####################################
#
# HLS m3u8 Playlist
#
# A Playlist is read in one forward pass over the lines of the document.
# The pass is a small state machine:
#
#   AwaitingEntry --(#EXTINF / #EXT-X-STREAM-INF)--> AwaitingUrl
#   AwaitingUrl   --(#EXT-X-BYTERANGE)-------------> AwaitingUrl
#   AwaitingUrl   --(URL line)---------------------> AwaitingEntry
#
# Blank lines and '##' comments are skipped in both states, so they
# are never taken as the URL line of the pending entry.
#
# Finished entries are appended in document order.  Media segments,
# variant streams and media groups are indexed as well, and decide
# whether the document is a master or a media playlist.  A document
# that is both is rejected.
#
####################################

import logging
from enum import Enum
from urllib.parse import urljoin, urlsplit

from hlsErrors import ParseError, MalformedByteRange, MissingContext, InvalidUrl, IncompleteEntry, AmbiguousFileType
from hlsEntries import EntryType, couldBeEntry, isComment, parseLine
from hlsValues import ByteRange, parseByteRange
from hlsVisitors import PlaylistWriter


class FileType(Enum):
	MASTER_PLAYLIST = 'MASTER_PLAYLIST'
	MEDIA_PLAYLIST = 'MEDIA_PLAYLIST'


####################################
#
# URL resolution
#
def isAbsoluteUrl(url):
	if any(c.isspace() or ord(c) < 0x20 for c in url):
		return False
	try:
		parts = urlsplit(url)
	except ValueError:
		return False
	return bool(parts.scheme) and bool(parts.netloc or parts.path)


def resolveUrl(context, reference):
	"""Resolve the line following a URL-bearing entry to an absolute URL.

	Without a context the reference has to be absolute already.
	"""
	reference = reference.strip()
	if context is None:
		if not isAbsoluteUrl(reference):
			raise MissingContext('Expected an absolute URL but no context was given', reference)
		return reference
	try:
		url = urljoin(context, reference)
	except ValueError as e:
		raise InvalidUrl('Cannot resolve URL against %r: %s' % (context, e), reference)
	if not isAbsoluteUrl(url):
		raise InvalidUrl('Reference does not resolve to an absolute URL against %r' % context, reference)
	return url


####################################
#
# Parser state machine
#
class ParsingState(object):
	# pending is the entry waiting for its URL line (None while awaiting
	# an entry), byteRangeOffset the start of the next implicit byte range.
	__slots__ = ('pending', 'byteRangeOffset')

	def __init__(self, pending=None, byteRangeOffset=0):
		self.pending = pending
		self.byteRangeOffset = byteRangeOffset

	@property
	def expectUrl(self):
		return self.pending is not None

	def __repr__(self):
		return 'ParsingState(%r, %d)' % (self.pending, self.byteRangeOffset)


def advance(state, line, context=None):
	"""Feed one line to the parser.

	Returns (next state, entries finished by this line, diagnostic).  The
	diagnostic is None unless the line was neither blank, a comment nor an
	entry, which is reported but does not stop the parse.

	The given state is never changed, but its pending entry is: a byte
	range line sets the entry's byteRange and the URL line its url.
	"""
	text = line.strip()
	if not text or isComment(text):
		return state, [], None

	if not state.expectUrl:
		if not couldBeEntry(text):
			return state, [], 'Line is not a valid entry: ' + text
		entry = parseLine(text)
		if entry.type is EntryType.EXT_X_BYTERANGE:
			raise MalformedByteRange('Byte range without a media segment before it', text)
		if entry.type.expectsUrl():
			return ParsingState(entry, state.byteRangeOffset), [], None
		return state, [entry], None

	if couldBeEntry(text):
		# Only a byte range belongs to the pending entry; anything else is
		# kept as a plain entry of its own.
		entry = parseLine(text, typed=False)
		if entry.type is not EntryType.EXT_X_BYTERANGE:
			return state, [entry], None
		if not state.pending.isMediaSegment():
			raise MalformedByteRange('Byte range after a %s entry' % state.pending.type, text)
		if len(entry.values) != 1:
			raise MalformedByteRange('Byte range entry should have exactly one value', text)
		try:
			start, end, offset = parseByteRange(entry.values[0], state.byteRangeOffset)
		except ParseError as err:
			err.line = text
			raise
		state.pending.payload.byteRange = ByteRange(start, end)
		return ParsingState(state.pending, offset), [], None

	state.pending.url = resolveUrl(context, text)
	logging.debug("++---------->> Resolved URL: %s", state.pending.url)
	return ParsingState(None, state.byteRangeOffset), [state.pending], None


####################################
#
# The Playlist
#
class Playlist(object):
	def __init__(self, data, context=None, parseAfterReading=False):
		"""
		@param data m3u8 text (bytes are decoded as UTF-8)
		@param context URL the text was retrieved from; references in the
		playlist are resolved against it
		@param parseAfterReading When set, parse() is called right away
		"""
		if isinstance(data, bytes):
			data = data.decode('utf-8')
		self.data = data
		self.context = context
		self.clear()
		if parseAfterReading:
			self.parse()

	def clear(self):
		self.parsed = False
		self.fileType = None
		self.entries = []
		self.mediaSegments = []
		self.variantStreams = []
		self.mediaGroups = []
		self.diagnostics = []  # (line number, message) of tolerated lines

	def accept(self, visitor):
		visitor.visit(self)

	def __str__(self):
		return self.__class__.__name__

	def isParsed(self):
		return self.parsed

	def isMaster(self):
		return self.fileType is FileType.MASTER_PLAYLIST

	def isMedia(self):
		return self.fileType is FileType.MEDIA_PLAYLIST

	def parse(self):
		# A second call on a parsed playlist is a no-op.
		if self.parsed:
			logging.info("++---------->> Playlist already parsed")
			return

		logging.info("++------------------------->> Entering parse")
		logging.info("++---------->> Data size: %s characters, context: %s", len(self.data), self.context)
		state = ParsingState()
		lineNumber = 0
		try:
			for lineNumber, line in enumerate(self.data.splitlines(), 1):
				state, finished, diagnostic = advance(state, line, self.context)
				for entry in finished:
					self.digest(entry)
				if diagnostic is not None:
					logging.warning("++---------->> %s (line %d)", diagnostic, lineNumber)
					self.diagnostics.append((lineNumber, diagnostic))
			if state.expectUrl:
				raise IncompleteEntry('Entry never received its URL', state.pending.line)
		except ParseError as err:
			if err.lineNumber is None:
				err.lineNumber = lineNumber
			logging.error("++---------->> Parse failed: %s", err)
			self.clear()
			raise
		self.parsed = True
		logging.info("++---------->> Parsed %d entries, file type %s", len(self.entries), self.fileType)
		logging.info("++------------------------->> Leaving parse")

	def digest(self, entry):
		self.entries.append(entry)
		if entry.isMediaSegment():
			self.digestFileType(FileType.MEDIA_PLAYLIST, entry)
			self.mediaSegments.append(entry)
		elif entry.isVariantStream():
			self.digestFileType(FileType.MASTER_PLAYLIST, entry)
			self.variantStreams.append(entry)
		elif entry.isMediaGroup():
			self.digestFileType(FileType.MASTER_PLAYLIST, entry)
			self.mediaGroups.append(entry)

	def digestFileType(self, fileType, entry):
		if self.fileType is None:
			logging.info("++---------->> File type: %s", fileType.name)
			self.fileType = fileType
		elif fileType is not self.fileType:
			raise AmbiguousFileType('The file type (master/media) of the m3u8 is ambiguous because of its content', entry.line)

	def addTrailerToEachURL(self, trailer):
		"""Append trailer to the URL of every media segment and variant stream.

		Returns False as soon as one of the results is not an absolute URL.
		The entries before it keep their new URL.
		"""
		for entry in self.entries:
			if not entry.hasUrl():
				continue
			newUrl = entry.url + trailer
			if not isAbsoluteUrl(newUrl):
				logging.error("++---------->> Failed to append %r to URL %s", trailer, entry.url)
				return False
			entry.url = newUrl
		return True

	def serialize(self):
		writer = PlaylistWriter()
		self.accept(writer)
		return writer.text()


def loads(data, context=None):
	return Playlist(data, context, parseAfterReading=True)
