####################################
#
# Error hierarchy for the HLS m3u8 parser.
#
# Every failure raised while reading a playlist is a ParseError, and
# every one of them aborts the parse.  The offending text is kept in
# `line` and, once the playlist assembler knows it, the 1-based
# position of that text in the document in `lineNumber`.
#
####################################

class ParseError(Exception):
	def __init__(self, message, line=None, lineNumber=None):
		Exception.__init__(self, message)
		self.message = message
		self.line = line
		self.lineNumber = lineNumber

	def __str__(self):
		text = self.message
		if self.line is not None:
			text += ': ' + repr(self.line)
		if self.lineNumber is not None:
			text += ' (line %d)' % self.lineNumber
		return text

## Vocabulary errors
class UnknownTag(ParseError): pass
class UnknownAttributeName(ParseError): pass
class UnknownAttributeForEntry(ParseError): pass

## Value errors
class MalformedAttribute(ParseError): pass
class MalformedResolution(ParseError): pass
class MalformedByteRange(ParseError): pass
class InvalidDuration(ParseError): pass

## URL errors
class MissingContext(ParseError): pass
class InvalidUrl(ParseError): pass

## Document structure errors
class IncompleteEntry(ParseError): pass
class AmbiguousFileType(ParseError): pass
