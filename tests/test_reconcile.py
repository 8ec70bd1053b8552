"""Tests for name matching and reconciliation decisions."""

from datetime import datetime, timezone

from ghostboard.models import EntryStatus, LeaderboardEntry
from ghostboard.services.reconcile import (
    AccountIdentity,
    ActionKind,
    BestEffort,
    find_name_match,
    levenshtein,
    normalize_name,
    reconcile,
)

JOHN = AccountIdentity(account_id=7, name="John Smith", first_name="John", last_name="Smith")


def row(entry_id, name, seconds, segment_id="hawk-hill", status=EntryStatus.GHOST, account_id=None):
    return LeaderboardEntry(
        id=entry_id,
        segment_id=segment_id,
        rider_name=name,
        time_seconds=seconds,
        time_display="",
        status=status,
        account_id=account_id,
    )


def best(seconds, segment_id="hawk-hill", effort_id=555):
    return BestEffort(
        segment_id=segment_id,
        elapsed_time=seconds,
        strava_effort_id=effort_id,
        start_date=datetime(2016, 5, 1, 8, 0, tzinfo=timezone.utc),
    )


class TestNormalization:
    def test_lowercases_trims_and_collapses(self):
        assert normalize_name("  John    SMITH ") == "john smith"

    def test_none_is_empty(self):
        assert normalize_name(None) == ""

    def test_levenshtein(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("jon smyth", "john smith") == 2


class TestNameMatching:
    """Each rule, plus rule priority across rows."""

    def test_exact(self):
        target = row(1, "John Smith", 300)
        assert find_name_match(JOHN, [target]) is target

    def test_first_and_last_initial(self):
        target = row(1, "john s.", 300)
        assert find_name_match(JOHN, [target]) is target

    def test_first_and_last_initial_without_period(self):
        target = row(1, "John S", 300)
        assert find_name_match(JOHN, [target]) is target

    def test_reversed(self):
        target = row(1, "Smith John", 300)
        assert find_name_match(JOHN, [target]) is target

    def test_containment(self):
        target = row(1, "John 'Flash' Smith", 300)
        assert find_name_match(JOHN, [target]) is target

    def test_typo_within_two_edits(self):
        target = row(1, "Jon Smyth", 300)
        assert find_name_match(JOHN, [target]) is target

    def test_unrelated_name_does_not_match(self):
        assert find_name_match(JOHN, [row(1, "James Johnson", 300)]) is None

    def test_unnamed_rows_never_match(self):
        assert find_name_match(JOHN, [row(1, None, 300), row(2, "", 301)]) is None

    def test_stricter_rule_wins_over_earlier_row(self):
        typo = row(1, "Jon Smith", 300)
        exact = row(2, "John Smith", 320)
        assert find_name_match(JOHN, [typo, exact]) is exact

    def test_missing_last_name_only_uses_full_name_rules(self):
        identity = AccountIdentity(account_id=7, name="John", first_name="John", last_name="")
        assert find_name_match(identity, [row(1, "John Doe", 300)]) is None
        assert find_name_match(identity, [row(2, "john", 300)]) is not None


class TestReconcile:
    def test_close_time_verifies(self):
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [row(11, "john s.", 380)])
        assert len(actions) == 1
        action = actions[0]
        assert action.kind == ActionKind.VERIFY
        assert action.entry_id == 11
        assert action.time_seconds == 378
        assert action.time_display == "6:18"
        assert action.previous_time == 380

    def test_distant_time_updates(self):
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [row(11, "john s.", 400)])
        assert actions[0].kind == ActionKind.UPDATE
        assert actions[0].entry_id == 11
        assert actions[0].time_seconds == 378

    def test_five_second_difference_is_an_update(self):
        actions = reconcile(JOHN, {"hawk-hill": best(375)}, [row(11, "John Smith", 380)])
        assert actions[0].kind == ActionKind.UPDATE

    def test_no_match_inserts(self):
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [row(11, "James Johnson", 380)])
        assert actions[0].kind == ActionKind.INSERT
        assert actions[0].entry_id is None

    def test_only_rows_on_the_same_segment_are_candidates(self):
        other = row(11, "John Smith", 378, segment_id="radio-road")
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [other])
        assert actions[0].kind == ActionKind.INSERT

    def test_owned_row_is_retargeted(self):
        owned = row(20, "John Smith", 390, status=EntryStatus.VERIFIED, account_id=7)
        ghost = row(11, "john s.", 378)
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [ghost], owned_rows=[owned])
        assert actions[0].entry_id == 20
        assert actions[0].kind == ActionKind.UPDATE

    def test_one_action_per_segment(self):
        efforts = {"hawk-hill": best(378), "radio-road": best(500, "radio-road", 556)}
        actions = reconcile(JOHN, efforts, [row(11, "john s.", 380)])
        assert [a.segment_id for a in actions] == ["hawk-hill", "radio-road"]
        assert [a.kind for a in actions] == [ActionKind.VERIFY, ActionKind.INSERT]

    def test_is_pure(self):
        ghost = row(11, "john s.", 380)
        reconcile(JOHN, {"hawk-hill": best(378)}, [ghost])
        assert ghost.time_seconds == 380
        assert ghost.status == EntryStatus.GHOST

    def test_row_held_by_another_account_is_not_a_candidate(self):
        claimed = row(11, "John Smith", 380, status=EntryStatus.CLAIMED, account_id=99)
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [claimed])
        assert actions[0].kind == ActionKind.INSERT
        assert actions[0].entry_id is None

    def test_row_claimed_by_this_account_is_a_candidate(self):
        claimed = row(11, "John Smith", 380, status=EntryStatus.CLAIMED, account_id=7)
        actions = reconcile(JOHN, {"hawk-hill": best(378)}, [claimed])
        assert actions[0].kind == ActionKind.VERIFY
        assert actions[0].entry_id == 11
