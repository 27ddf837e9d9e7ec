# 07.10.26

import logging

from StreamTier.core.models import QualityConfig, Representation
from StreamTier.core.parser.hls import parse_hls
from StreamTier.core.session import ManifestSession
from StreamTier.core.rewrite import rewrite, rewrite_to, select_target, is_rewritable
from StreamTier.core.rewrite.patterns import compile_template, expand_template


FORCE_MAX = QualityConfig(force_max=True)

REPS_BITRATE = [
    Representation(id="1080p", height=1080, bandwidth=6000000, dash_tier="4500", template="video/1080p/seg_$Number$.m4s"),
    Representation(id="720p", height=720, bandwidth=4000000, dash_tier="2500", template="video/720p/seg_$Number$.m4s"),
]

REPS_RESOLUTION = [
    Representation(id="1080p", height=1080, bandwidth=6000000, dash_tier="5500", template="path/_1080p_/_5500/seg_$Number$.m4s"),
    Representation(id="540p", height=540, bandwidth=2000000, dash_tier="2000", template="path/_540p_/_2000/seg_$Number$.m4s"),
]

DAI_LOW_URL = "https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/0219929b8f4989b82a0b9a8f58f7352a/bandwidth/635781.m3u8"
DAI_HIGH_URL = "https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/51dee42484fe2a2135500e11874015a5/bandwidth/635781.m3u8"
DAI_MASTER = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=635781,RESOLUTION=480x270
https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/0219929b8f4989b82a0b9a8f58f7352a/bandwidth/635781.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=8940798,RESOLUTION=1920x1080
https://dai.google.com/linear/hls/pa/event/EID/stream/SID/variant/51dee42484fe2a2135500e11874015a5/bandwidth/8940798.m3u8"""


class TestSelectTarget:
    def test_force_max_takes_first_at_least_1080(self):
        reps = [
            Representation(id="4k", height=2160, bandwidth=16000000),
            Representation(id="fhd", height=1080, bandwidth=6000000),
        ]

        assert select_target(reps, FORCE_MAX).id == "4k"

    def test_force_max_without_full_hd_takes_best(self):
        reps = [Representation(id="hd", height=720), Representation(id="sd", height=480)]

        assert select_target(reps, FORCE_MAX).id == "hd"

    def test_forced_id_beats_force_max(self):
        config = QualityConfig(force_max=True, forced_id="720p")

        assert select_target(REPS_BITRATE, config).id == "720p"

    def test_nothing_selected(self):
        assert select_target(REPS_BITRATE, QualityConfig()) is None
        assert select_target([], FORCE_MAX) is None
        assert select_target(REPS_BITRATE, QualityConfig(forced_id="missing")) is None


class TestDashRewrite:
    """Segment URL rewriting for DASH streams."""

    def test_bare_tier_segment(self):
        result = rewrite("https://host/video/_2500/seg_10.m4s", REPS_BITRATE, FORCE_MAX)

        assert result == "https://host/video/_4500/seg_10.m4s"

    def test_resolution_template_segment(self):
        result = rewrite("https://host/path/_540p_/_2000/seg_123.m4s", REPS_RESOLUTION, FORCE_MAX)

        assert "_1080p_" in result
        assert "_5500" in result
        assert "seg_123.m4s" in result
        assert result == "https://host/path/_1080p_/_5500/seg_123.m4s"

    def test_resolution_swap_updates_tier_without_template(self):
        reps = [
            Representation(id="hi", height=1080, bandwidth=6000000, dash_tier="5500"),
            Representation(id="lo", height=540, bandwidth=2000000, dash_tier="2000"),
        ]

        result = rewrite("https://host/path/_540p_/_2000/seg_123.m4s", reps, FORCE_MAX)

        assert result == "https://host/path/_1080p_/_5500/seg_123.m4s"

    def test_resolution_swap_replaces_path_id(self):
        reps = [
            Representation(id="hi", height=1080, bandwidth=7000000, dash_tier="5577", path_id="Show_FTR_engUS_5577"),
            Representation(id="lo", height=540, bandwidth=2600000, dash_tier="2000", path_id="Show_FTR_engUS_2000"),
        ]

        result = rewrite("https://cdn/content/_540p_/Show_FTR_engUS_2000/seg_5.m4s", reps, FORCE_MAX)

        assert result == "https://cdn/content/_1080p_/Show_FTR_engUS_5577/seg_5.m4s"

    def test_query_string_is_preserved(self):
        result = rewrite("https://host/video/_2500/seg_10.m4s?token=_2500/seg_1.m4s", REPS_BITRATE, FORCE_MAX)

        assert result == "https://host/video/_4500/seg_10.m4s?token=_2500/seg_1.m4s"

    def test_representation_id_template_with_width(self):
        reps = [
            Representation(id="s0-hi", raw_id="hi", height=1080, bandwidth=6000000, template="v/$RepresentationID$/seg_$Number%05d$.m4s"),
            Representation(id="s0-lo", raw_id="lo", height=480, bandwidth=1500000, template="v/$RepresentationID$/seg_$Number%05d$.m4s"),
        ]

        result = rewrite("https://cdn/v/lo/seg_00042.m4s", reps, FORCE_MAX)

        assert result == "https://cdn/v/hi/seg_00042.m4s"
        assert rewrite(result, reps, FORCE_MAX) == result

    def test_bandwidth_template(self):
        reps = [
            Representation(id="s0-1", raw_id="1", height=1080, bandwidth=6000000, dash_tier="4500", template="v/$Bandwidth$/seg_$Number$.m4s"),
            Representation(id="s0-2", raw_id="2", height=480, bandwidth=1900000, dash_tier="1500", template="v/$Bandwidth$/seg_$Number$.m4s"),
        ]

        result = rewrite("https://cdn/v/1500/seg_7.m4s", reps, FORCE_MAX)

        assert result == "https://cdn/v/4500/seg_7.m4s"

    def test_forced_lower_tier(self):
        config = QualityConfig(forced_id="720p")

        result = rewrite("https://host/video/_4500/seg_3.m4s", REPS_BITRATE, config)

        assert result == "https://host/video/_2500/seg_3.m4s"

    def test_rewrite_is_idempotent(self):
        for reps, url in (
            (REPS_BITRATE, "https://host/video/_2500/seg_10.m4s"),
            (REPS_RESOLUTION, "https://host/path/_540p_/_2000/seg_123.m4s"),
        ):
            once = rewrite(url, reps, FORCE_MAX)
            assert rewrite(once, reps, FORCE_MAX) == once

    def test_rewrite_to_explicit_target(self):
        result = rewrite_to("https://host/video/_4500/seg_10.m4s", REPS_BITRATE, REPS_BITRATE[1])

        assert result == "https://host/video/_2500/seg_10.m4s"

    def test_unfillable_template_falls_through(self):
        target = Representation(id="hi", height=1080, dash_tier="4500", template="v/$Time$/seg.m4s")
        reps = [target, Representation(id="lo", height=480, dash_tier="1500", template="v/lo/_1500/seg_$Number$.m4s")]

        result = rewrite_to("https://cdn/v/lo/_1500/seg_9.m4s", reps, target)

        assert result == "https://cdn/v/lo/_4500/seg_9.m4s"


class TestNoRewrite:
    def test_audio_segments(self):
        url = "https://host/audio/_aac_/seg_1.m4s"

        assert rewrite(url, REPS_BITRATE, FORCE_MAX) == url

    def test_audio_by_cmcd_object_type(self):
        url = "https://host/video/_2500/seg_1.m4s?CMCD=ot%3Da%2Cbr%3D128"

        assert rewrite(url, REPS_BITRATE, FORCE_MAX) == url

    def test_inactive_config(self):
        url = "https://host/video/_2500/seg_1.m4s"

        assert rewrite(url, REPS_BITRATE, QualityConfig()) == url
        assert rewrite(url, REPS_BITRATE, None) == url

    def test_ad_segments(self):
        url = "https://googlevideo.com/videoplayback?source=dclk_video_ads"

        assert rewrite(url, REPS_BITRATE, FORCE_MAX) == url

    def test_no_representations(self):
        url = "https://live.example.com/live/stream/seg-100.m4s"

        assert rewrite(url, [], FORCE_MAX) == url

    def test_invalid_input(self):
        assert rewrite(None, REPS_BITRATE, FORCE_MAX) is None
        assert rewrite("", REPS_BITRATE, FORCE_MAX) == ""
        assert is_rewritable(None) is False

    def test_unknown_forced_id_warns_once(self, caplog):
        url = "https://host/video/_2500/seg_1.m4s"
        config = QualityConfig(forced_id="ghost-tier")
        session = ManifestSession(config)
        session.set_representations(REPS_BITRATE)

        with caplog.at_level(logging.WARNING):
            assert rewrite(url, REPS_BITRATE, config, session) == url
            assert rewrite(url, REPS_BITRATE, config, session) == url

        warnings = [record for record in caplog.records if "ghost-tier" in record.getMessage()]
        assert len(warnings) == 1

    def test_new_representation_list_reports_missing_id_again(self, caplog):
        url = "https://host/video/_2500/seg_1.m4s"
        config = QualityConfig(forced_id="ghost-tier")
        session = ManifestSession(config)

        with caplog.at_level(logging.WARNING):
            session.set_representations(REPS_BITRATE)
            rewrite(url, REPS_BITRATE, config, session)
            session.set_representations(REPS_BITRATE)
            rewrite(url, REPS_BITRATE, config, session)

        warnings = [record for record in caplog.records if "ghost-tier" in record.getMessage()]
        assert len(warnings) == 2

    def test_sessions_track_missing_ids_separately(self):
        first, second = ManifestSession(), ManifestSession()

        assert first.mark_missing_target("ghost-tier")
        assert not first.mark_missing_target("ghost-tier")
        assert second.mark_missing_target("ghost-tier")


class TestHlsRewrite:
    def test_dai_variant_forced_id(self):
        reps = parse_hls(DAI_MASTER).representations
        high = next(rep for rep in reps if rep.height == 1080)

        assert high.id == "hls_1"
        assert rewrite(DAI_LOW_URL, reps, QualityConfig(forced_id="hls_1")) == DAI_HIGH_URL

    def test_dai_variant_force_max(self):
        reps = parse_hls(DAI_MASTER).representations

        assert rewrite(DAI_LOW_URL, reps, FORCE_MAX) == DAI_HIGH_URL

    def test_dai_variant_already_target(self):
        reps = parse_hls(DAI_MASTER).representations

        assert rewrite(DAI_HIGH_URL, reps, FORCE_MAX) == DAI_HIGH_URL

    def test_hls_tier_segment(self):
        reps = [
            Representation(id="hls_1", height=1080, bandwidth=6000000, hls_tier="5"),
            Representation(id="hls_0", height=480, bandwidth=1500000, hls_tier="2"),
        ]

        result = rewrite("https://cdn.example.com/live/manifest_video_2_1_00042.mp4?x=1", reps, FORCE_MAX)

        assert result == "https://cdn.example.com/live/manifest_video_5_1_00042.mp4?x=1"


class TestTemplatePatterns:
    def test_compile_escapes_literals(self):
        compiled = compile_template("a.b/$RepresentationID$/seg_$Number$.m4s")

        assert compiled.groups == ("RepresentationID", "Number")
        assert compiled.regex.search("x/a.b/r1/seg_7.m4s")
        assert not compiled.regex.search("x/aXb/r1/seg_7.m4s")

    def test_expand_uses_tier_for_bandwidth(self):
        rep = Representation(id="s0-1", raw_id="1", bandwidth=5800000, dash_tier="4500", tier_estimated=True)

        assert expand_template("$RepresentationID$/$Bandwidth$/$Number%03d$.m4s", rep, "7") == "1/5800000/007.m4s"

    def test_expand_keeps_missing_time(self):
        rep = Representation(id="a", dash_tier="3000")

        assert expand_template("v/$Bandwidth$/$Time$.m4s", rep) == "v/3000/$Time$.m4s"


class TestQualityConfig:
    def test_accepts_wire_and_snake_case(self):
        assert QualityConfig.from_dict({"forceMax": True}) == QualityConfig(force_max=True)
        assert QualityConfig.from_dict({"forced_id": "s1-3"}) == QualityConfig(forced_id="s1-3")
        assert QualityConfig.from_dict(None) == QualityConfig()

    def test_round_trip_to_wire_shape(self):
        config = QualityConfig(force_max=False, forced_id="hls_1")

        assert config.to_dict() == {"forceMax": False, "forcedId": "hls_1"}
        assert QualityConfig.from_dict(config.to_dict()) == config
        assert config.is_active
        assert not QualityConfig().is_active
