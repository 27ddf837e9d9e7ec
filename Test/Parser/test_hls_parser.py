# 06.10.26

from StreamTier.core.models import Representation
from StreamTier.core.parser import parse_manifest, detect_manifest_type
from StreamTier.core.parser.hls import HLSParser, parse_hls


DAI_LOW = "0219929b8f4989b82a0b9a8f58f7352a"
DAI_HIGH = "51dee42484fe2a2135500e11874015a5"

DAI_MASTER = f"""#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=635781,RESOLUTION=480x270
https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/{DAI_LOW}/bandwidth/635781.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=8940798,RESOLUTION=1920x1080
https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/{DAI_HIGH}/bandwidth/8940798.m3u8"""


class TestHLSMaster:
    """Variant extraction from master playlists."""

    def test_parses_variants_sorted_by_height(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=2000000,RESOLUTION=1280x720,CODECS="avc1.4d401f,mp4a.40.2"
720p/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080
1080p/index.m3u8"""

        result = parse_hls(playlist)

        assert result.manifest_type == "hls"
        assert [rep.height for rep in result.representations] == [1080, 720]
        assert result.representations[1].codecs == "avc1.4d401f,mp4a.40.2"
        assert result.representations[1].width == 1280

    def test_ids_follow_document_order(self):
        result = parse_hls(DAI_MASTER)
        by_height = {rep.height: rep for rep in result.representations}

        assert by_height[270].id == "hls_0"
        assert by_height[1080].id == "hls_1"
        assert all(rep.is_hls for rep in result.representations)

    def test_extracts_dai_ids(self):
        result = parse_hls(DAI_MASTER)
        by_height = {rep.height: rep for rep in result.representations}

        assert by_height[270].dai_id == DAI_LOW
        assert by_height[1080].dai_id == DAI_HIGH

    def test_extracts_hls_tier_from_variant_url(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=4500000,RESOLUTION=1920x1080
https://cdn.example.com/manifest_video_5_/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=1500000,RESOLUTION=854x480
https://cdn.example.com/video/2/index.m3u8"""

        reps = parse_hls(playlist).representations

        assert reps[0].hls_tier == "5"
        assert reps[1].hls_tier == "2"

    def test_average_bandwidth_is_not_bandwidth(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:AVERAGE-BANDWIDTH=3000000,BANDWIDTH=4000000,RESOLUTION=1280x720
720.m3u8"""

        assert parse_hls(playlist).representations[0].bandwidth == 4000000

    def test_missing_resolution_estimated_from_bandwidth(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=3000000
a.m3u8"""

        rep = parse_hls(playlist).representations[0]

        assert rep.height == 720
        assert rep.bandwidth == 3000000

    def test_low_bitrate_variant_estimated_as_234p(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=150000
low.m3u8"""

        assert parse_hls(playlist).representations[0].height == 234

    def test_variant_without_height_or_bandwidth_is_skipped(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:CODECS="avc1"
a.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360
b.m3u8"""

        reps = parse_hls(playlist).representations

        assert len(reps) == 1
        assert reps[0].id == "hls_0"

    def test_variant_url_skips_comments_and_blank_lines(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360

# comment
low/index.m3u8"""

        rep = parse_hls(playlist, "https://cdn.example.com/master.m3u8").representations[0]

        assert rep.variant_url == "https://cdn.example.com/low/index.m3u8"

    def test_keeps_highest_bandwidth_per_height(self):
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=4000000,RESOLUTION=1920x1080
https://cdn.example.com/manifest_video_4_/a.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=6000000,RESOLUTION=1920x1080
https://cdn.example.com/manifest_video_6_/b.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080
https://cdn.example.com/manifest_video_6_/c.m3u8"""

        reps = parse_hls(playlist).representations

        assert len(reps) == 1
        assert reps[0].bandwidth == 6000000
        assert reps[0].hls_tier == "6"


class TestHLSMediaPlaylist:
    """Media playlists only report the active DAI tier."""

    MEDIA = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:100
#EXTINF:6.0,
segment_100.ts"""

    def test_infers_active_quality_from_variant_request(self):
        known = parse_hls(DAI_MASTER).representations
        url = f"https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/{DAI_HIGH}/bandwidth/8940798.m3u8"

        result = parse_hls(self.MEDIA, url, known)

        assert result.representations == []
        assert result.active_quality is not None
        assert result.active_quality.dai_id == DAI_HIGH
        assert result.active_quality.resolution == "1080p"
        assert result.active_quality.bitrate == 8941

    def test_no_signal_without_known_representations(self):
        url = f"https://dai.google.com/variant/{DAI_HIGH}/bandwidth/1.m3u8"

        result = parse_hls(self.MEDIA, url)

        assert result.active_quality is None
        assert result.representations == []

    def test_no_signal_for_unknown_variant(self):
        known = [Representation(id="hls_0", height=720, bandwidth=3000000, dai_id=DAI_LOW)]

        result = HLSParser(self.MEDIA, "https://cdn.example.com/other.m3u8", known).parse()

        assert result.active_quality is None


class TestManifestDispatch:
    def test_detects_formats(self):
        assert detect_manifest_type("#EXTM3U\n") == "hls"
        assert detect_manifest_type("  \n<?xml version='1.0'?><MPD/>") == "dash"
        assert detect_manifest_type(b"<MPD></MPD>") == "dash"
        assert detect_manifest_type("\ufeff#EXTM3U") == "hls"
        assert detect_manifest_type("<html></html>") is None
        assert detect_manifest_type("") is None
        assert detect_manifest_type(None) is None

    def test_unknown_format_yields_empty_result(self):
        result = parse_manifest("{\"not\": \"a manifest\"}", "https://x/api.m3u8")

        assert result.representations == []
        assert result.manifest_type is None

    def test_bytes_hls_content(self):
        result = parse_manifest(DAI_MASTER.encode("utf-8"))

        assert len(result.representations) == 2
