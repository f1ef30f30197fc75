"""
tests/test_traffic.py — Traffic block computation tests.
"""

import os
import re
import sys
import copy
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from knc.errors import ReferentialError, ValidationError
from knc.serving.model import LatestTarget, RevisionTarget, target_from_dict
from knc.traffic.compute import compute


def latest(percent=None, tag=""):
    return LatestTarget(tag=tag, percent=percent)


def rev(name, percent=None, tag=""):
    return RevisionTarget(revision_name=name, tag=tag, percent=percent)


def assert_invariants(block, traffic_specified):
    assert sum(1 for t in block if t.latest_revision) <= 1
    tags = [t.tag for t in block if t.tag]
    assert len(tags) == len(set(tags))
    assert all(0 <= (t.percent or 0) <= 100 for t in block)
    assert not any(t.tag == "" and (t.percent or 0) == 0 for t in block)
    if traffic_specified:
        assert sum(t.percent or 0 for t in block) == 100


# ─────────────────────────────────────────────
# Tagging
# ─────────────────────────────────────────────

class TestTagging:
    def test_tag_latest(self):
        result = compute([latest(100)], tags=["@latest=latest"])
        assert result == [latest(100, tag="latest")]

    def test_tag_latest_idempotent(self):
        existing = [latest(100, tag="latest")]
        assert compute(existing, tags=["@latest=latest"]) == existing

    def test_tag_latest_appends_when_missing(self):
        result = compute([rev("echo-v1", 100)], tags=["@latest=current"])
        assert result == [rev("echo-v1", 100), latest(0, tag="current")]

    def test_untag_and_retag(self):
        existing = [rev("echo-v1", 50, tag="latest"), rev("echo-v2", 50)]
        result = compute(
            existing,
            tags=["echo-v1=old", "echo-v2=latest"],
            untags=["latest"],
        )
        assert result == [rev("echo-v1", 50, tag="old"), rev("echo-v2", 50, tag="latest")]

    def test_tags_for_untracked_revisions(self):
        result = compute([latest(100)], tags=["echo-v1=stale", "echo-v2=old"])
        assert result == [
            latest(100),
            rev("echo-v1", 0, tag="stale"),
            rev("echo-v2", 0, tag="old"),
        ]

    def test_second_tag_on_revision_appends_target(self):
        result = compute([rev("echo-v1", 100, tag="v1")], tags=["echo-v1=current"])
        assert result == [rev("echo-v1", 100, tag="v1"), rev("echo-v1", 0, tag="current")]
        assert result[1].latest_revision is False

    def test_tag_already_on_revision_is_noop(self):
        existing = [rev("echo-v1", 100, tag="v1")]
        assert compute(existing, tags=["echo-v1=v1"]) == existing

    def test_overwrite_tag_of_other_target(self):
        existing = [latest(2, tag="latest"), rev("echo-v2", 98, tag="stable")]
        expected = (
            "refusing to overwrite existing tag in service, "
            "add flag '--untag stable' in command to untag it"
        )
        with pytest.raises(ReferentialError, match=re.escape(expected)):
            compute(existing, tags=["@latest=stable"])

    def test_overwrite_tag_on_revision(self):
        with pytest.raises(ReferentialError, match="--untag stable"):
            compute([rev("echo-v1", 100, tag="stable")], tags=["echo-v2=stable"])

    def test_overwrite_tag_of_latest(self):
        expected = (
            "tag 'candidate' exists on latest ready revision of service, "
            "refusing to overwrite existing tag with 'current', "
            "add flag '--untag candidate' in command to untag it"
        )
        with pytest.raises(ReferentialError, match=re.escape(expected)):
            compute([latest(100, tag="candidate")], tags=["@latest=current"])

    def test_untag_missing(self):
        expected = "tag(s) foo, bar not present for any revisions of service serviceName"
        with pytest.raises(ReferentialError, match=re.escape(expected)):
            compute([rev("echo-v1", 100, tag="latest")], untags=["foo", "bar"],
                    service_name="serviceName")

    def test_untag_prunes_idle_target(self):
        result = compute([latest(100), rev("echo-v1", 0, tag="old")], untags=["old"])
        assert result == [latest(100)]


# ─────────────────────────────────────────────
# Traffic distribution
# ─────────────────────────────────────────────

class TestTraffic:
    def test_split_latest_and_revision(self):
        result = compute([latest(100), rev("rev-v1", 0)], traffic=["@latest=10", "rev-v1=90"])
        assert result == [latest(10), rev("rev-v1", 90)]
        assert_invariants(result, True)

    def test_percent_sign_accepted(self):
        result = compute([latest(100), rev("rev-v1", 0)], traffic=["@latest=10%", "rev-v1=90%"])
        assert result == [latest(10), rev("rev-v1", 90)]

    def test_revision_appended_after_latest(self):
        result = compute([latest(100)], traffic=["echo-v1=10", "@latest=90"])
        assert result == [latest(90), rev("echo-v1", 10)]

    def test_latest_appended_when_missing(self):
        result = compute([rev("echo-v1", 100, tag="latest")], traffic=["@latest=2", "echo-v1=98"])
        assert result == [rev("echo-v1", 98, tag="latest"), latest(2)]

    def test_tag_latest_and_split(self):
        result = compute(
            [rev("echo-v1", 100, tag="latest")],
            tags=["@latest=testing"],
            traffic=["@latest=2", "echo-v1=98"],
        )
        assert result == [rev("echo-v1", 98, tag="latest"), latest(2, tag="testing")]

    def test_split_by_tags(self):
        result = compute(
            [rev("echo-v1", 100, tag="v1")],
            tags=["echo-v2=v2"],
            traffic=["v1=10", "v2=90"],
        )
        assert result == [rev("echo-v1", 10, tag="v1"), rev("echo-v2", 90, tag="v2")]

    def test_tag_wins_over_revision_name(self):
        existing = [rev("echo-v1", 50, tag="echo-v2"), rev("echo-v2", 50)]
        result = compute(existing, traffic=["echo-v2=100"])
        assert result == [rev("echo-v1", 100, tag="echo-v2")]

    def test_unmentioned_targets_reset(self):
        existing = [latest(50), rev("echo-v1", 50, tag="old")]
        result = compute(existing, traffic=["@latest=100"])
        assert result == [latest(100), rev("echo-v1", 0, tag="old")]
        assert_invariants(result, True)

    def test_sum_must_be_100(self):
        with pytest.raises(ValidationError, match="given traffic percents sum to 110, want 100"):
            compute([latest(100)], traffic=["@latest=40", "echo-v1=70"])

    def test_sum_below_100(self):
        with pytest.raises(ValidationError, match="sum to 90, want 100"):
            compute([latest(100)], traffic=["echo-v1=90"])

    def test_non_integer_percent(self):
        with pytest.raises(ValidationError, match="error converting given 100p"):
            compute([latest(100)], traffic=["echo-v1=100p"])

    def test_negative_percent(self):
        expected = "invalid value for traffic percent -100, expected 0 <= percent <= 100"
        with pytest.raises(ValidationError, match=re.escape(expected)):
            compute([latest(100)], traffic=["echo-v1=-100"])

    def test_repeated_revision(self):
        expected = (
            "repetition of revision reference echo-v1 is not allowed, "
            "use only once with --traffic flag"
        )
        with pytest.raises(ReferentialError, match=re.escape(expected)):
            compute([latest(100)], traffic=["echo-v1=50", "echo-v1=50"])

    def test_repeated_latest_traffic(self):
        with pytest.raises(ValidationError, match="repetition of identifier @latest .* --traffic flag"):
            compute([latest(100)], traffic=["@latest=50", "@latest=50"])

    def test_repeated_latest_tag(self):
        with pytest.raises(ValidationError, match="repetition of identifier @latest .* --tag flag"):
            compute([latest(100)], tags=["@latest=a", "@latest=b"])


# ─────────────────────────────────────────────
# Input format and purity
# ─────────────────────────────────────────────

class TestInput:
    @pytest.mark.parametrize("pair", ["echo-v1", "=90", "echo-v1=", "a=b=c"])
    def test_malformed_pairs(self, pair):
        expected = f"expecting the value format in value1=value2, given {pair}"
        with pytest.raises(ValidationError, match=re.escape(expected)):
            compute([latest(100)], traffic=[pair])

    def test_malformed_tag_pair(self):
        with pytest.raises(ValidationError, match="value1=value2"):
            compute([latest(100)], tags=["@latest"])

    def test_validation_before_untag(self):
        # A bad percent is reported even if the untag would fail too
        with pytest.raises(ValidationError):
            compute([latest(100)], traffic=["x=abc"], untags=["missing"])

    def test_existing_not_modified(self):
        existing = [rev("echo-v1", 50, tag="latest"), rev("echo-v2", 50)]
        before = copy.deepcopy(existing)
        compute(existing, tags=["echo-v1=old", "echo-v2=latest"], untags=["latest"])
        assert existing == before

    def test_no_input_only_prunes(self):
        existing = [latest(100), rev("echo-v1", 0), rev("echo-v2", 0, tag="old")]
        assert compute(existing) == [latest(100), rev("echo-v2", 0, tag="old")]

    def test_reapplying_converges(self):
        kwargs = dict(tags=["echo-v1=old", "echo-v2=latest"], untags=["latest"])
        once = compute([rev("echo-v1", 50, tag="latest"), rev("echo-v2", 50)], **kwargs)
        assert compute(once, **kwargs) == once

    def test_wire_form(self):
        result = compute([target_from_dict({"latestRevision": True, "percent": 100})],
                         tags=["echo-v1=old"])
        assert [t.to_dict() for t in result] == [
            {"latestRevision": True, "percent": 100},
            {"tag": "old", "revisionName": "echo-v1", "latestRevision": False, "percent": 0},
        ]
