####################################
#
# Value parsers for the HLS m3u8 parser
#
# These turn the raw tokens found behind a tag into typed values:
# unsigned integers, durations, WIDTHxHEIGHT resolutions, codec
# signalling strings (RFC 6381) and cumulative byte ranges.
#
####################################

import logging
import re
from collections import namedtuple
from decimal import Decimal
from enum import Enum

from hlsErrors import MalformedAttribute, MalformedResolution, MalformedByteRange, InvalidDuration

INTEGER_REGEX = re.compile(r'[0-9]+')
DURATION_REGEX = re.compile(r'[0-9]+(?:\.[0-9]*)?|\.[0-9]+')
RESOLUTION_SPLIT_CHAR = 'x'
BYTERANGE_OFFSET_CHAR = '@'
CODECS_SPLIT_CHAR = ','

MEDIA_DURATION_NONE = -1.0


class Resolution(namedtuple('Resolution', ['width', 'height'])):
	__slots__ = ()

	def __str__(self):
		return '%d%s%d' % (self.width, RESOLUTION_SPLIT_CHAR, self.height)


class ByteRange(namedtuple('ByteRange', ['start', 'end'])):
	# start and end are both inclusive byte positions
	__slots__ = ()

	@property
	def length(self):
		return self.end - self.start + 1

	def __str__(self):
		return '%d%s%d' % (self.length, BYTERANGE_OFFSET_CHAR, self.start)


def isUnsignedInt(token):
	return INTEGER_REGEX.fullmatch(token) is not None


def parseUnsignedInt(token, name='value'):
	token = token.strip()
	if not isUnsignedInt(token):
		raise MalformedAttribute('Expected an unsigned integer for %s, got %r' % (name, token))
	return int(token)


def parseDuration(token):
	token = token.strip()
	if DURATION_REGEX.fullmatch(token) is None:
		raise InvalidDuration('Duration must be a non-negative decimal number, got %r' % token)
	return float(token)


def formatDuration(duration):
	# Plain decimal with at least one fractional digit; repr() would give
	# exponent notation for very small or very large values.
	text = format(Decimal(repr(float(duration))), 'f')
	if '.' not in text:
		text += '.0'
	return text


def parseResolution(res):
	parsedRes = res.strip().split(RESOLUTION_SPLIT_CHAR)
	if len(parsedRes) != 2 or not (isUnsignedInt(parsedRes[0]) and isUnsignedInt(parsedRes[1])):
		raise MalformedResolution('Malformed resolution %r' % res)
	return Resolution(int(parsedRes[0]), int(parsedRes[1]))


def parseByteRange(token, runningOffset=0):
	# LENGTH[@OFFSET].  Without an explicit offset the range continues
	# right after the previous one, which the caller hands in as runningOffset.
	# Returns (start, end, offset to hand to the next call).
	parsed = token.strip().split(BYTERANGE_OFFSET_CHAR)
	if len(parsed) > 2 or not isUnsignedInt(parsed[0]):
		raise MalformedByteRange('Malformed byte range %r' % token)
	length = int(parsed[0])
	if length == 0:
		raise MalformedByteRange('Byte range length must be positive, got %r' % token)
	if len(parsed) == 2:
		if not isUnsignedInt(parsed[1]):
			raise MalformedByteRange('Malformed byte range offset %r' % token)
		start = int(parsed[1])
	else:
		start = runningOffset
	end = start + length - 1
	logging.debug("++---------->> Byte range %s resolved to %s-%s", token, start, end)
	return start, end, end + 1


####################################
#
# Codecs
#
# See the Apple HLS authoring FAQ and
# https://cconcolato.github.io/media-mime-support/ for the strings.
class CodecId(Enum):
	H264_HIGH_PROFILE_41 = 'H264_HIGH_PROFILE_41'
	H264_HIGH_PROFILE_40 = 'H264_HIGH_PROFILE_40'
	H264_HIGH_PROFILE_31 = 'H264_HIGH_PROFILE_31'
	H264_MAIN_PROFILE_40 = 'H264_MAIN_PROFILE_40'
	H264_MAIN_PROFILE_31 = 'H264_MAIN_PROFILE_31'
	H264_MAIN_PROFILE_30 = 'H264_MAIN_PROFILE_30'
	H264_BASE_PROFILE_31 = 'H264_BASE_PROFILE_31'
	H264_BASE_PROFILE_30 = 'H264_BASE_PROFILE_30'
	H264_BASE_PROFILE_21 = 'H264_BASE_PROFILE_21'
	AAC_LC = 'AAC_LC'
	AAC_HE = 'AAC_HE'
	MP3 = 'MP3'
	NOT_IMPLEMENTED = 'NOT_IMPLEMENTED'


CODEC_TABLE = {
	'mp4a.40.2': CodecId.AAC_LC,
	'mp4a.40.5': CodecId.AAC_HE,
	'mp4a.40.34': CodecId.MP3,

	'avc1.640029': CodecId.H264_HIGH_PROFILE_41,
	'avc1.640028': CodecId.H264_HIGH_PROFILE_40,
	'avc1.64001f': CodecId.H264_HIGH_PROFILE_31,

	'avc1.4d0028': CodecId.H264_MAIN_PROFILE_40,
	'avc1.4d001f': CodecId.H264_MAIN_PROFILE_31,
	'avc1.4d401f': CodecId.H264_MAIN_PROFILE_31,  # constrained
	'avc1.4d001e': CodecId.H264_MAIN_PROFILE_30,
	'avc1.77.30': CodecId.H264_MAIN_PROFILE_30,  # iOS v3 compat

	'avc1.42001f': CodecId.H264_BASE_PROFILE_31,
	'avc1.42001e': CodecId.H264_BASE_PROFILE_30,
	'avc1.66.30': CodecId.H264_BASE_PROFILE_30,  # iOS v3 compat
	'avc1.420016': CodecId.H264_BASE_PROFILE_21,
}


def parseCodec(raw):
	codecId = CODEC_TABLE.get(raw.strip(), CodecId.NOT_IMPLEMENTED)
	if codecId is CodecId.NOT_IMPLEMENTED:
		logging.info("++---------->> Codec not implemented: %s", raw)
	return codecId


class Codec(object):
	def __init__(self, signal):
		self.signal = signal.strip()
		self.id = parseCodec(self.signal)

	def isAVC(self):
		return self.id.name.startswith('H264')

	def isAAC(self):
		return self.id.name.startswith('AAC')

	def isMP3(self):
		return self.id is CodecId.MP3

	def __eq__(self, other):
		return isinstance(other, Codec) and self.signal == other.signal

	def __hash__(self):
		return hash(self.signal)

	def __repr__(self):
		return 'Codec(%r, %s)' % (self.signal, self.id.name)

	def __str__(self):
		return self.signal


def parseCodecs(codecsString):
	return [Codec(c) for c in codecsString.split(CODECS_SPLIT_CHAR) if c.strip()]
