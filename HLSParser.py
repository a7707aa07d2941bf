####################################
#
# HLS m3u8 Playlist Parser
#
####################################
#
# Reads an HLS playlist (master or media playlist) from a web server
# or disk, parses it and reports on what it found.
#
# Program Flow:
#   1) Get playlist URLs from the user (command or batch mode)
#   2) Retrieve each playlist file from the web server or disk
#   3) Parse the playlist file
#   4) Produce a report (screen in command mode, PDF in batch mode)
#
# Running the Program:
#   >python HLSParser.py [OPTION]... command <valid-URL>...
#   >python HLSParser.py [OPTION]... batch <batch-file-name>
#
# The batch file lists one playlist URL or file per line.
#
####################################

import getopt
import logging
import os
import sys
from pathlib import Path
from urllib.parse import urlsplit

import requests

from hlsErrors import ParseError
from hlsPlaylist import Playlist
from hlsVisitors import ScreenReport, PdfReport, mergeReports

_DEFAULT_LOG_FILE = 'HLSParser.log'
_DEFAULT_LOG_LEVEL = logging.DEBUG
_DEFAULT_PDF = 'output.pdf'
_HTTP_TIMEOUT = 30
_USER_AGENT = 'HLSParser/0.1'
_PLAYLIST_EXTENSIONS = ('.m3u8', '.m3u')
_PLAYLIST_CONTENT_TYPES = ('application/vnd.apple.mpegurl', 'application/x-mpegurl',
                           'audio/mpegurl', 'audio/x-mpegurl')


def usage():
	print("Usage: %s [OPTION]... command URL..." % sys.argv[0])
	print("       %s [OPTION]... batch BATCH-FILE\n" % sys.argv[0])
	print("URL is a playlist on a web server (http/https) or a local file.")
	print("BATCH-FILE lists one such URL per line.\n")
	print("OPTION can be one of:")
	print("  -h, --help          Show this usage message")
	print("  --log-level=N       Log level (10=debug 20=info 30=warning 40=error); default is %d" % _DEFAULT_LOG_LEVEL)
	print("  --log-file=FILE     Write the log to FILE; default is `%s'" % _DEFAULT_LOG_FILE)
	print("  --trailer=STRING    Append STRING to every segment/stream URL, e.g. a session token")
	print("  --output=FILE       (command) Write the parsed playlist back to FILE")
	print("  --pdf=FILE          (batch) Merged PDF report; default is `%s'" % _DEFAULT_PDF)


####################################
#
# This function is used to open a URL or file.  It returns the text of
# the playlist and the context URL its references resolve against.
def openURL(url):
	logging.info("++----------------------------------->> Entering openURL")
	logging.info("++---------->> Passed in URL: %s", url)
	valid = urlsplit(url).path.endswith(_PLAYLIST_EXTENSIONS)
	if url.startswith("http://") or url.startswith("https://"):
		logging.info("++---------->> Attempting openURL using http")
		response = requests.get(url, headers={'User-Agent': _USER_AGENT}, timeout=_HTTP_TIMEOUT)
		response.raise_for_status()
		contentType = response.headers.get('content-type', '').split(';')[0].strip().lower()
		if contentType in _PLAYLIST_CONTENT_TYPES:
			logging.info("++---------->> openURL Valid via content-type= %s", contentType)
			valid = True
		if not valid:
			logging.warning("++---------->> %s does not look like an m3u8 playlist", url)
		logging.info("++---------->> Leaving openURL, final URL %s", response.url)
		return response.text, response.url

	# Not a web URL, so presumably a local file
	logging.info("++---------->> Attempting openURL using file-handle")
	if not valid:
		logging.warning("++---------->> %s does not look like an m3u8 playlist", url)
	path = Path(url)
	text = path.read_text(encoding='utf-8')
	logging.info("++---------->> Leaving openURL, read %d characters", len(text))
	return text, path.resolve().as_uri()
#
# End of openURL
####################################

def createPlaylist(url, trailer=None):
	logging.info("++------------------------->> Entering createPlaylist")
	text, context = openURL(url)
	playlist = Playlist(text, context, parseAfterReading=True)
	if trailer and not playlist.addTrailerToEachURL(trailer):
		logging.warning("++---------->> Could not append trailer %r to every URL of %s", trailer, url)
	logging.info("++------------------------->> Leaving createPlaylist")
	return playlist


def reportName(url, index, directory):
	stem = os.path.splitext(os.path.basename(urlsplit(url).path))[0] or 'playlist'
	return os.path.join(directory, '%d-%s.pdf' % (index, stem))


def readBatchFile(fileName):
	with open(fileName, encoding='utf-8') as fh:
		return [line.strip() for line in fh if line.strip() and not line.startswith('#')]


####################################
#
# Batch mode: one PDF report per listed playlist, merged into pdf.
# A playlist that cannot be read or parsed is reported and skipped; the
# exit code is 1 when that happened.
def runBatch(batchFile, trailer, pdf):
	directory = os.path.dirname(os.path.abspath(pdf))
	reports = []
	failed = 0
	try:
		for index, url in enumerate(readBatchFile(batchFile), 1):
			try:
				playlist = createPlaylist(url, trailer)
			except (requests.exceptions.RequestException, OSError, ParseError) as e:
				print("Error: ", url, e)
				logging.error("++---------->> Skipping %s: %s", url, e)
				failed += 1
				continue
			name = reportName(url, index, directory)
			playlist.accept(PdfReport(name, url))
			reports.append(name)
		if reports:
			mergeReports(reports, pdf)
			print("Report written to", pdf)
		elif not failed:
			print("No playlists listed in", batchFile)
	finally:
		# the per-playlist reports only live until they are merged
		for name in reports:
			if os.path.exists(name) and os.path.abspath(name) != os.path.abspath(pdf):
				os.remove(name)
	return 1 if failed else 0
#
# End of runBatch
####################################


####################################
#
# This is the main program function
def main(argv):
	logLevel = _DEFAULT_LOG_LEVEL
	logFile = _DEFAULT_LOG_FILE
	trailer = None
	output = None
	pdf = _DEFAULT_PDF

	try:
		opts, args = getopt.getopt(argv, 'h', ['help', 'log-level=', 'log-file=',
		                                       'trailer=', 'output=', 'pdf='])
	except getopt.GetoptError as err:
		print(err)
		usage()
		return 2

	for o, a in opts:
		if o in ('-h', '--help'):
			usage()
			return 0
		elif o == '--log-level':
			try:
				logLevel = int(a)
			except ValueError:
				print("--log-level takes a number, got %r" % a)
				usage()
				return 2
		elif o == '--log-file':
			logFile = a
		elif o == '--trailer':
			trailer = a
		elif o == '--output':
			output = a
		elif o == '--pdf':
			pdf = a

	if len(args) < 2:
		usage()
		return 2
	mode, targets = args[0], args[1:]

	logging.basicConfig(filename=logFile, level=logLevel)
	logging.info("++-------->> File FORMAT: %s", mode)
	logging.info("++-------->> File File/URL: %s", targets)

	try:
		## Command line execution block
		if mode == 'command':
			if output and len(targets) > 1:
				print("--output takes a single URL")
				return 2
			for url in targets:
				playlist = createPlaylist(url, trailer)
				playlist.accept(ScreenReport(url))
				if output:
					Path(output).write_text(playlist.serialize(), encoding='utf-8')
					logging.info("++---------->> Wrote playlist to %s", output)

		## Batch mode execution block
		elif mode == 'batch':
			logging.info("++---------->> Entered Batch mode:")
			return runBatch(targets[0], trailer, pdf)

		else:
			print("++-------->> File FORMAT:", mode + " should be either command or batch")
			return 2
	except (requests.exceptions.RequestException, OSError, ParseError) as e:
		print("Error: ", e)
		logging.error("++---------->> %s", e)
		return 1
	return 0
#
# End of the main program function
####################################

def run():
	sys.exit(main(sys.argv[1:]))

if __name__ == "__main__":
	run()
