"""
Frame Color Classifier Tests
============================

Rule predicates, priority order, threshold boundaries and edge cases.
"""

import numpy as np
import pytest

from conftest import BLUE, BROWN, DARK, GRAY, GREEN, RED, WHITE, YELLOW


class TestStandardRules:
    """Each signature on its own."""

    @pytest.mark.parametrize(
        "color, code, condition",
        [
            (RED, "RED_DOMINANT", "Inflammation or Infection"),
            (YELLOW, "YELLOW", "Pus or Discharge"),
            (WHITE, "WHITE", "Fungal Infection or Necrosis"),
            (BROWN, "BROWN", "Scab or Old Wound"),
            (GREEN, "GREEN", "Possible Gangrene or Severe Infection"),
            (BLUE, "BLUE_PURPLE", "Cyanosis or Bruising"),
            (DARK, "DARK", "Bruising or Tissue Damage"),
        ],
    )
    def test_full_frame_of_one_signature(self, standard_classifier, pixel_frame, color, code, condition):
        """A frame made entirely of one signature flags that condition."""
        result = standard_classifier.classify(pixel_frame([(color, 100)], total=100))

        assert result.detected
        assert result.code.value == code
        assert result.condition == condition
        assert result.advisory
        assert result.coverage == pytest.approx(100.0)

    def test_neutral_frame_has_no_condition(self, standard_classifier, pixel_frame):
        result = standard_classifier.classify(pixel_frame([], total=100))

        assert not result.detected
        assert result.code is None
        assert result.condition is None
        assert result.advisory is None

    def test_rules_are_in_priority_order(self, standard_classifier):
        codes = [rule.code.value for rule in standard_classifier.rules]
        assert codes == [
            "RED_DOMINANT", "YELLOW", "WHITE", "BROWN", "GREEN", "BLUE_PURPLE", "DARK",
        ]

    def test_thresholds(self, standard_classifier):
        thresholds = [rule.threshold for rule in standard_classifier.rules]
        assert thresholds == [12.0, 7.0, 8.0, 8.0, 5.0, 7.0, 15.0]


class TestPriority:
    """Priority order decides, not the largest coverage."""

    def test_red_wins_over_yellow(self, standard_classifier, pixel_frame):
        pixels = pixel_frame([(RED, 13), (YELLOW, 8)], total=100)

        result = standard_classifier.classify(pixels)

        assert result.condition == "Inflammation or Infection"
        assert result.coverage == pytest.approx(13.0)

    def test_red_wins_over_larger_dark_area(self, standard_classifier, pixel_frame):
        pixels = pixel_frame([(RED, 13), (DARK, 40)], total=100)

        result = standard_classifier.classify(pixels)

        assert result.code.value == "RED_DOMINANT"

    def test_lower_rule_wins_when_higher_rule_below_threshold(self, standard_classifier, pixel_frame):
        pixels = pixel_frame([(RED, 10), (YELLOW, 8)], total=100)

        result = standard_classifier.classify(pixels)

        assert result.condition == "Pus or Discharge"

    def test_green_beats_dark(self, standard_classifier, pixel_frame):
        pixels = pixel_frame([(GREEN, 6), (DARK, 50)], total=100)

        assert standard_classifier.classify(pixels).code.value == "GREEN"


class TestThresholdBoundary:
    """Coverage equal to the threshold does not count as exceeding it."""

    @pytest.mark.parametrize(
        "color, at_threshold",
        [
            (RED, 24),     # 12%
            (YELLOW, 14),  # 7%
            (WHITE, 16),   # 8%
            (BROWN, 16),   # 8%
            (GREEN, 10),   # 5%
            (BLUE, 14),    # 7%
            (DARK, 30),    # 15%
        ],
    )
    def test_exactly_at_threshold_is_not_detected(self, standard_classifier, pixel_frame, color, at_threshold):
        pixels = pixel_frame([(color, at_threshold)], total=200)

        assert not standard_classifier.classify(pixels).detected

    @pytest.mark.parametrize(
        "color, above_threshold",
        [(RED, 25), (GREEN, 11), (DARK, 31)],
    )
    def test_just_above_threshold_is_detected(self, standard_classifier, pixel_frame, color, above_threshold):
        pixels = pixel_frame([(color, above_threshold)], total=200)

        assert standard_classifier.classify(pixels).detected


class TestEdgeCases:
    """Input shapes and purity."""

    def test_empty_list(self, standard_classifier):
        assert not standard_classifier.classify([]).detected

    def test_zero_sized_image(self, standard_classifier):
        assert not standard_classifier.classify(np.zeros((0, 0, 3), dtype=np.uint8)).detected

    def test_image_shaped_input(self, standard_classifier):
        image = np.empty((10, 20, 3), dtype=np.uint8)
        image[:, :] = GRAY
        image[:3, :] = RED  # 30%

        result = standard_classifier.classify(image)

        assert result.code.value == "RED_DOMINANT"
        assert result.coverage == pytest.approx(30.0)

    def test_alpha_channel_is_ignored(self, standard_classifier):
        rgba = np.empty((8, 8, 4), dtype=np.uint8)
        rgba[:, :] = (*GREEN, 255)

        assert standard_classifier.classify(rgba).code.value == "GREEN"

    def test_list_of_tuples(self, standard_classifier):
        assert standard_classifier.classify([BLUE, BLUE, GRAY]).code.value == "BLUE_PURPLE"

    @pytest.mark.parametrize(
        "bad_input",
        [
            np.zeros((10, 2), dtype=np.uint8),
            [1, 2, 3],
            np.full((48, 64), 30, dtype=np.uint8),   # grayscale frame
            np.zeros((10, 7), dtype=np.uint8),
            np.zeros((2, 4, 4, 3), dtype=np.uint8),
        ],
        ids=["two-channels", "flat-list", "grayscale", "seven-channels", "4d"],
    )
    def test_malformed_input_raises(self, standard_classifier, bad_input):
        with pytest.raises(ValueError):
            standard_classifier.classify(bad_input)

    def test_repeated_calls_give_identical_results(self, standard_classifier, pixel_frame):
        pixels = pixel_frame([(RED, 13), (YELLOW, 8)], total=100)

        first = standard_classifier.classify(pixels)
        second = standard_classifier.classify(pixels)

        assert first == second

    def test_input_is_not_modified(self, standard_classifier, pixel_frame):
        pixels = pixel_frame([(DARK, 50)], total=100)
        before = pixels.copy()

        standard_classifier.classify(pixels)

        assert np.array_equal(pixels, before)


class TestBasicRuleSet:
    """The older two-rule variant."""

    def test_has_two_rules(self, basic_classifier):
        assert [rule.code.value for rule in basic_classifier.rules] == ["RED_DOMINANT", "DARK"]

    def test_red_ratio_is_stricter(self, standard_classifier, basic_classifier, pixel_frame):
        """r > 1.3g passes the standard rule but not r > 1.5g."""
        pixels = pixel_frame([((200, 140, 140), 100)], total=100)

        assert standard_classifier.classify(pixels).code.value == "RED_DOMINANT"
        assert not basic_classifier.classify(pixels).detected

    def test_red_threshold_is_fifteen_percent(self, basic_classifier, pixel_frame):
        assert not basic_classifier.classify(pixel_frame([(RED, 30)], total=200)).detected
        assert basic_classifier.classify(pixel_frame([(RED, 31)], total=200)).detected

    def test_dark_uses_wider_range(self, standard_classifier, basic_classifier, pixel_frame):
        pixels = pixel_frame([((90, 90, 90), 50)], total=100)

        assert basic_classifier.classify(pixels).condition == "Bruising or Tissue Damage"
        assert not standard_classifier.classify(pixels).detected

    def test_yellow_not_in_basic(self, basic_classifier, pixel_frame):
        assert not basic_classifier.classify(pixel_frame([(YELLOW, 100)], total=100)).detected


class TestCoverage:
    """Per-rule coverage reporting."""

    def test_reports_every_rule(self, standard_classifier, pixel_frame):
        coverage = standard_classifier.coverage(pixel_frame([(RED, 13), (DARK, 40)], total=100))

        assert coverage["RED_DOMINANT"] == pytest.approx(13.0)
        assert coverage["DARK"] == pytest.approx(40.0)
        assert coverage["WHITE"] == 0.0
        assert len(coverage) == 7

    def test_empty_frame(self, standard_classifier):
        assert all(v == 0.0 for v in standard_classifier.coverage([]).values())


class TestRuleSetLookup:

    def test_unknown_rule_set(self):
        from medsight.classifier import UnknownRuleSetError, get_rule_set

        with pytest.raises(UnknownRuleSetError):
            get_rule_set("experimental")

    def test_lookup_is_case_insensitive(self):
        from medsight.classifier import STANDARD_RULES, get_rule_set

        assert get_rule_set("STANDARD") == STANDARD_RULES

    def test_classifier_requires_rules(self):
        from medsight.classifier import FrameColorClassifier

        with pytest.raises(ValueError):
            FrameColorClassifier([])

    def test_result_message(self, standard_classifier, pixel_frame):
        result = standard_classifier.classify(pixel_frame([(GREEN, 100)], total=100))

        assert result.message.startswith("Possible Gangrene or Severe Infection detected. ")
        assert result.to_dict()["code"] == "GREEN"
