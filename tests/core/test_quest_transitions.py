"""Quest status state machine tests"""

import itertools

import pytest

from tavern.core.errors import PolicyError
from tavern.core.quest import (
    ApplicationStatus,
    QuestStatus,
    assert_application_pending,
    assert_can_accept,
    assert_can_apply,
    assert_can_complete,
    assert_npc_status_transition,
    can_delete_quest,
    can_edit_quest,
    is_allowed_npc_transition,
)

S = QuestStatus

EXPECTED_ALLOWED = {
    (S.DRAFT, S.POSTED),
    (S.DRAFT, S.CANCELLED),
    (S.POSTED, S.CANCELLED),
    (S.IN_PROGRESS, S.CANCELLED),
}


class TestNpcTransitions:
    @pytest.mark.parametrize("current,target", list(itertools.product(S, S)))
    def test_every_pair(self, current, target):
        allowed = current == target or (current, target) in EXPECTED_ALLOWED
        if allowed:
            assert_npc_status_transition(current, target)
        else:
            with pytest.raises(PolicyError):
                assert_npc_status_transition(current, target)
        assert is_allowed_npc_transition(current, target) is allowed

    def test_in_progress_is_never_an_npc_target(self):
        with pytest.raises(PolicyError, match="IN_PROGRESS"):
            assert_npc_status_transition(S.POSTED, S.IN_PROGRESS)

    def test_completed_is_never_an_npc_target(self):
        """Even from IN_PROGRESS, completion has its own endpoint"""
        with pytest.raises(PolicyError, match="COMPLETED"):
            assert_npc_status_transition(S.IN_PROGRESS, S.COMPLETED)

    def test_error_names_both_states(self):
        with pytest.raises(PolicyError) as exc_info:
            assert_npc_status_transition(S.CANCELLED, S.DRAFT)
        assert "CANCELLED" in exc_info.value.message
        assert "DRAFT" in exc_info.value.message

    def test_accepts_plain_strings(self):
        assert_npc_status_transition("DRAFT", "POSTED")


class TestEditDeleteGating:
    @pytest.mark.parametrize(
        "status,editable",
        [
            (S.DRAFT, True),
            (S.POSTED, True),
            (S.IN_PROGRESS, False),
            (S.COMPLETED, False),
            (S.CANCELLED, False),
        ],
    )
    def test_edit(self, status, editable):
        assert can_edit_quest(status) is editable

    @pytest.mark.parametrize("status", list(S))
    def test_delete_only_draft(self, status):
        assert can_delete_quest(status) is (status == S.DRAFT)


class TestAcceptComplete:
    def test_apply_only_posted(self):
        assert_can_apply(S.POSTED)
        for status in (S.DRAFT, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED):
            with pytest.raises(PolicyError, match="accept applications"):
                assert_can_apply(status)

    def test_only_pending_applications_are_decided(self):
        assert_application_pending(ApplicationStatus.PENDING)
        for status in (ApplicationStatus.ACCEPTED, "REJECTED"):
            with pytest.raises(PolicyError, match="already decided"):
                assert_application_pending(status)

    def test_accept_only_posted(self):
        assert_can_accept(S.POSTED)
        for status in (S.DRAFT, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED):
            with pytest.raises(PolicyError):
                assert_can_accept(status)

    @pytest.mark.parametrize("status", [S.COMPLETED, S.CANCELLED])
    def test_complete_rejects_terminal(self, status):
        with pytest.raises(PolicyError, match="already completed or cancelled"):
            assert_can_complete(status)

    def test_complete_allows_in_progress(self):
        assert_can_complete(S.IN_PROGRESS)
