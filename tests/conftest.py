import pytest

MASTER_URL = 'http://host/path/master.m3u8'
MEDIA_URL = 'http://host/path/playlist.m3u8'

MASTER_TEXT = '''#EXTM3U
#EXT-X-VERSION:3
## generated by encoder
#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aac",NAME="English",LANGUAGE="en",URI="eng.m3u8"
#EXT-X-STREAM-INF:PROGRAM-ID=1,BANDWIDTH=1280000,CODECS="mp4a.40.2,avc1.640029",RESOLUTION=640x360,AUDIO="aac"
low/index.m3u8
#EXT-X-STREAM-INF:PROGRAM-ID=1,BANDWIDTH=2560000,CODECS="mp4a.40.2,avc1.640029",RESOLUTION=1280x720,AUDIO="aac"
http://cdn.example.com/high/index.m3u8
'''

MEDIA_TEXT = '''#EXTM3U
#EXT-X-VERSION:4
#EXT-X-TARGETDURATION:10
#EXT-X-MEDIA-SEQUENCE:0
#EXTINF:10.0,
segment1.ts
#EXTINF:9.5,
segment2.ts
#EXT-X-ENDLIST
'''

BYTERANGE_TEXT = '''#EXTM3U
#EXTINF:10.0,
#EXT-X-BYTERANGE:76242@0
main.ts
#EXTINF:10.0,
#EXT-X-BYTERANGE:82112
main.ts
#EXTINF:10.0,
#EXT-X-BYTERANGE:1000@500000
main.ts
'''


@pytest.fixture
def masterFile(tmp_path):
	path = tmp_path / 'master.m3u8'
	path.write_text(MASTER_TEXT, encoding='utf-8')
	return path


@pytest.fixture
def mediaFile(tmp_path):
	path = tmp_path / 'media.m3u8'
	path.write_text(MEDIA_TEXT, encoding='utf-8')
	return path
