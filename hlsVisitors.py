####################################
#
# Visitors over a parsed Playlist
#
# The Playlist only "accepts" a visitor, which then does its work on
# the playlist.  That keeps writing the playlist back to text and the
# different reports out of the Playlist class:
#
#   PlaylistWriter  m3u8 text of the playlist
#   ScreenReport    summary printed to the screen
#   PdfReport       same summary as a PDF document
#
####################################

import logging
from xml.sax.saxutils import escape

from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.colors import blue
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer

REPORT_TITLE = 'Playlist Report'
REPORT_BEGIN = '<<##--------------------- Report ------------------------##>>'
REPORT_END = '<<##--------------- End of Report ---------------##>>'


class Visitor:
	def __str__(self):
		return self.__class__.__name__


class PlaylistWriter(Visitor):
	"""Writes the entries back as m3u8 text, one rendering per entry."""
	def __init__(self):
		self.lines = []

	def visit(self, playlist):
		for entry in playlist.entries:
			self.lines.append(str(entry))

	def text(self):
		return ''.join(line + '\n' for line in self.lines)


####################################
#
# Reports
#
def reportLines(playlist, suppliedURL=None):
	# Heading lines start with '-----<<' so the PDF report can space them out
	lines = []
	lines.append('The given URL was = %s' % (suppliedURL or playlist.context))
	lines.append('The playlist was a Master = %s' % playlist.isMaster())
	lines.append('File type = %s' % (playlist.fileType.name if playlist.fileType else 'UNKNOWN'))
	lines.append('Entries parsed = %d' % len(playlist.entries))

	if playlist.variantStreams:
		lines.append('-----<<VARIANT STREAMS>>-----')
		for entry in playlist.variantStreams:
			stream = entry.payload
			codecs = ', '.join('%s (%s)' % (c.signal, c.id.name) for c in stream.codecs)
			lines.append('%s bandwidth=%s resolution=%s codecs=[%s]' % (
				entry.url, stream.bandwidth, stream.resolution, codecs))

	if playlist.mediaGroups:
		lines.append('-----<<MEDIA GROUPS>>-----')
		for entry in playlist.mediaGroups:
			group = entry.payload
			lines.append('%s group=%s name=%s language=%s uri=%s' % (
				group.groupType.name if group.groupType else None,
				group.groupId, group.name, group.language, group.uri))

	if playlist.mediaSegments:
		lines.append('-----<<MEDIA SEGMENTS>>-----')
		total = sum(entry.payload.duration for entry in playlist.mediaSegments)
		ranged = [entry for entry in playlist.mediaSegments if entry.payload.byteRange is not None]
		lines.append('Segments = %d' % len(playlist.mediaSegments))
		lines.append('Total duration = %.3f seconds' % total)
		lines.append('Segments with a byte range = %d' % len(ranged))

	if playlist.diagnostics:
		lines.append('-----<<DIAGNOSTICS>>-----')
		for lineNumber, message in playlist.diagnostics:
			lines.append('line %d: %s' % (lineNumber, message))
	return lines


class ScreenReport(Visitor):
	def __init__(self, suppliedURL=None):
		self.suppliedURL = suppliedURL

	def visit(self, playlist):
		print(REPORT_BEGIN)
		for line in reportLines(playlist, self.suppliedURL):
			if line.startswith('-----<<'):
				print('')
			print(line)
		print('')
		print(REPORT_END)


def firstPage(canvas, doc):
	canvas.saveState()
	canvas.setFont('Times-Roman', 9)
	canvas.drawString(inch, 0.75 * inch, "First Page / %s" % REPORT_TITLE)
	canvas.restoreState()


def laterPages(canvas, doc):
	canvas.saveState()
	canvas.setFont('Times-Roman', 9)
	canvas.drawString(inch, 0.75 * inch, "Page %d %s" % (doc.page, REPORT_TITLE))
	canvas.restoreState()


class PdfReport(Visitor):
	def __init__(self, fileName, suppliedURL=None):
		self.fileName = fileName
		self.suppliedURL = suppliedURL

	def visit(self, playlist):
		logging.info("++---------->> Writing PDF report %s", self.fileName)
		doc = SimpleDocTemplate(self.fileName)
		style = getSampleStyleSheet()["Normal"]
		style.textColor = blue
		story = [Paragraph(escape(REPORT_BEGIN), style), Spacer(1, 0.2 * inch)]
		for line in reportLines(playlist, self.suppliedURL):
			if line.startswith('-----<<'):
				story.append(Spacer(1, 0.2 * inch))
			# Paragraph text is markup, URLs may carry '&'
			story.append(Paragraph(escape(line), style))
		story.append(Spacer(1, 0.2 * inch))
		story.append(Paragraph(escape(REPORT_END), style))
		doc.build(story, onFirstPage=firstPage, onLaterPages=laterPages)


def mergeReports(fileNames, outName):
	writer = PdfWriter()
	for name in fileNames:
		reader = PdfReader(name)
		for page in reader.pages:
			writer.add_page(page)
	with open(outName, 'wb') as fh:
		writer.write(fh)
	logging.info("++---------->> Merged %d reports into %s", len(fileNames), outName)
