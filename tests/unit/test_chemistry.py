"""Tests for chemistry selection and LiHV latching."""

import pytest

from sagcomp.chemistry import ChemistryClassifier, ChemistryMode, ChemistryState


def make_classifier(mode=ChemistryMode.AUTO):
    return ChemistryClassifier(mode, detect_v=4.23, samples_needed=3, rest_throttle=0.10)


class TestChemistryModeParse:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ChemistryMode.AUTO),
            ("auto", ChemistryMode.AUTO),
            ("0", ChemistryMode.AUTO),
            ("1", ChemistryMode.STANDARD),
            ("2", ChemistryMode.HIGH_VOLTAGE),
            ("LiHV", ChemistryMode.HIGH_VOLTAGE),
            (" standard ", ChemistryMode.STANDARD),
        ],
    )
    def test_parse(self, value, expected):
        assert ChemistryMode.parse(value) is expected

    def test_unknown_falls_back_to_auto(self, capsys):
        assert ChemistryMode.parse("lead-acid") is ChemistryMode.AUTO
        assert "Unknown chemistry mode" in capsys.readouterr().err


class TestAutoDetection:
    def test_latches_after_consecutive_samples_at_threshold(self):
        chem = make_classifier()
        assert chem.update(4.23, 0.0) is False
        assert chem.update(4.23, 0.0) is False
        assert chem.update(4.23, 0.0) is True
        assert chem.state is ChemistryState.AUTO_LATCHED_HIGH_VOLTAGE
        assert chem.high_voltage is True

    def test_interrupting_sample_resets_count(self):
        chem = make_classifier()
        chem.update(4.23, 0.0)
        chem.update(4.23, 0.0)
        chem.update(4.22, 0.0)
        assert chem.count == 0
        chem.update(4.23, 0.0)
        chem.update(4.23, 0.0)
        assert chem.state is ChemistryState.AUTO_UNLATCHED

    def test_high_throttle_sample_resets_count(self):
        chem = make_classifier()
        chem.update(4.30, 0.0)
        chem.update(4.30, 0.5)
        assert chem.count == 0

    def test_latch_never_reverts(self):
        chem = make_classifier()
        for _ in range(3):
            chem.update(4.25, 0.0)
        for _ in range(10):
            chem.update(3.5, 0.0)
        assert chem.high_voltage is True


class TestForcedModes:
    def test_forced_standard_ignores_evidence(self):
        chem = make_classifier(ChemistryMode.STANDARD)
        for _ in range(5):
            assert chem.update(4.30, 0.0) is False
        assert chem.state is ChemistryState.FORCED_STANDARD
        assert chem.high_voltage is False

    def test_forced_high_voltage(self):
        chem = make_classifier(ChemistryMode.HIGH_VOLTAGE)
        assert chem.state is ChemistryState.FORCED_HIGH_VOLTAGE
        assert chem.high_voltage is True


class TestPersistence:
    @pytest.mark.parametrize(
        "mode,latched,word",
        [
            (ChemistryMode.AUTO, False, "AUTO"),
            (ChemistryMode.AUTO, True, "HIGH_VOLTAGE"),
            (ChemistryMode.STANDARD, False, "STANDARD"),
            (ChemistryMode.HIGH_VOLTAGE, False, "HIGH_VOLTAGE"),
        ],
    )
    def test_persisted_word(self, mode, latched, word):
        chem = make_classifier(mode)
        chem.latched = latched
        assert chem.persisted_word() == word

    def test_restore_in_auto(self):
        chem = make_classifier()
        chem.restore("HIGH_VOLTAGE")
        assert chem.high_voltage is True

    def test_restore_ignored_when_forced(self):
        chem = make_classifier(ChemistryMode.STANDARD)
        chem.restore("HIGH_VOLTAGE")
        assert chem.high_voltage is False

    def test_forced_mode_reports_outdated_stored_word_once(self):
        chem = make_classifier(ChemistryMode.STANDARD)
        chem.restore("HIGH_VOLTAGE")

        assert chem.update(3.8, 0.0) is True
        assert chem.update(3.8, 0.0) is False
        assert chem.high_voltage is False

    @pytest.mark.parametrize(
        "mode,word",
        [(ChemistryMode.STANDARD, "STANDARD"), (ChemistryMode.HIGH_VOLTAGE, "HIGH_VOLTAGE")],
    )
    def test_forced_mode_matching_stored_word(self, mode, word):
        chem = make_classifier(mode)
        chem.restore(word)

        assert chem.update(3.8, 0.0) is False

    def test_forced_high_voltage_rewrites_auto_word(self):
        chem = make_classifier(ChemistryMode.HIGH_VOLTAGE)
        chem.restore("AUTO")

        assert chem.update(3.8, 0.0) is True
