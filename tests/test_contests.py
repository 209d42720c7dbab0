import pytest

from domain.judging import (
    Conflict,
    ContestService,
    EnrollmentService,
    InvalidState,
    LeaderboardService,
    NotFound,
    ReviewService,
    SubmissionService,
)
from domain.models import ContestStatus, ContestUser, ParticipantStatus, SubmissionStatus

from conftest import enroll, make_contest, make_submission, minutes_ago


# ==================== contests ====================

def test_new_contest_starts_planned(db):
    contest = ContestService(db).create_contest("Autumn Open")
    assert contest.status == ContestStatus.PLANNED.value


def test_contest_end_must_follow_start(db):
    with pytest.raises(InvalidState):
        ContestService(db).create_contest("Backwards", start_time=minutes_ago(0), end_time=minutes_ago(60))


@pytest.mark.parametrize(
    "path",
    [
        [ContestStatus.RUNNING, ContestStatus.ENDED, ContestStatus.ARCHIVED],
        [ContestStatus.ARCHIVED],
    ],
)
def test_allowed_contest_transitions(db, path):
    service = ContestService(db)
    contest = service.create_contest("Cup")
    for status in path:
        contest = service.change_status(contest.id, status)
    assert contest.status == path[-1].value


@pytest.mark.parametrize(
    "start, target",
    [
        (ContestStatus.PLANNED, ContestStatus.ENDED),
        (ContestStatus.RUNNING, ContestStatus.PLANNED),
        (ContestStatus.ENDED, ContestStatus.RUNNING),
        (ContestStatus.ARCHIVED, ContestStatus.RUNNING),
    ],
)
def test_forbidden_contest_transitions(db, start, target):
    contest = make_contest(db, status=start)
    with pytest.raises(InvalidState):
        ContestService(db).change_status(contest.id, target)


def test_add_problem_defaults_points_to_max_score(db, world):
    service = ContestService(db)
    problem = service.create_problem("Knapsack", "Pack it.", max_score=250)
    contest = service.create_contest("Extra")

    link = service.add_problem(contest.id, problem.id)

    assert link.points == 250
    with pytest.raises(Conflict):
        service.add_problem(contest.id, problem.id)
    with pytest.raises(NotFound):
        service.add_problem(contest.id, 999)
    with pytest.raises(NotFound):
        service.add_problem(999, problem.id)


# ==================== enrollment ====================

def test_join_creates_active_enrollment(db, world):
    enrollment = EnrollmentService(db).join(world.contest.id, world.bob.id)
    assert enrollment.status == ParticipantStatus.ACTIVE.value


def test_join_twice_is_conflict(db, world):
    with pytest.raises(Conflict):
        EnrollmentService(db).join(world.contest.id, world.alice.id)


def test_join_closed_contest_is_refused(db, world):
    ended = make_contest(db, name="Done", status=ContestStatus.ENDED)
    with pytest.raises(InvalidState):
        EnrollmentService(db).join(ended.id, world.bob.id)


def test_join_unknown_contest_or_user(db, world):
    service = EnrollmentService(db)
    with pytest.raises(NotFound):
        service.join(999, world.bob.id)
    with pytest.raises(NotFound):
        service.join(world.contest.id, 999)


def test_leave_without_submissions_deletes_enrollment(db, world):
    assert EnrollmentService(db).leave(world.contest.id, world.alice.id) is None
    assert db.query(ContestUser).filter(ContestUser.user_id == world.alice.id).count() == 0


def test_leave_with_submissions_withdraws_and_rejoin_reactivates(db, world):
    make_submission(db, world)
    service = EnrollmentService(db)

    withdrawn = service.leave(world.contest.id, world.alice.id)
    assert withdrawn.status == ParticipantStatus.WITHDRAWN.value

    rejoined = service.join(world.contest.id, world.alice.id)
    assert rejoined.status == ParticipantStatus.ACTIVE.value


def test_leave_when_not_registered(db, world):
    with pytest.raises(NotFound):
        EnrollmentService(db).leave(world.contest.id, world.bob.id)


def test_disqualified_is_terminal(db, world):
    service = EnrollmentService(db)
    service.set_status(world.contest.id, world.alice.id, ParticipantStatus.DISQUALIFIED)

    with pytest.raises(InvalidState):
        service.set_status(world.contest.id, world.alice.id, ParticipantStatus.ACTIVE)


def test_participants_filtered_by_status(db, world):
    enroll(db, world.contest, world.bob, ParticipantStatus.WITHDRAWN)
    service = EnrollmentService(db)

    assert {p.user_id for p in service.participants(world.contest.id)} == {world.alice.id, world.bob.id}
    active = service.participants(world.contest.id, ParticipantStatus.ACTIVE)
    assert [p.user_id for p in active] == [world.alice.id]


# ==================== reviews & leaderboard ====================

def _review(db, world, judge, correct, score, submitter=None):
    submission = make_submission(
        db,
        world,
        submitter_id=(submitter or world.alice).id,
        status=SubmissionStatus.UNDER_REVIEW.value,
        reviewer_id=judge.id,
    )
    return SubmissionService(db).finalize_review(submission.id, judge.id, correct=correct, score_awarded=score)


def test_judge_statistics(db, world):
    _review(db, world, world.judge1, True, 100)
    _review(db, world, world.judge1, False, 15)
    _review(db, world, world.judge1, True, 40)
    _review(db, world, world.judge2, True, 10)

    stats = ReviewService(db).judge_statistics(world.judge1.id)

    assert stats == {
        "total_reviews": 3,
        "accepted_reviews": 2,
        "rejected_reviews": 1,
        "average_score": 51.67,
    }
    assert ReviewService(db).judge_statistics(world.bob.id)["average_score"] == 0


def test_review_queries(db, world):
    first = _review(db, world, world.judge1, True, 10)
    second = _review(db, world, world.judge1, False, 0)
    service = ReviewService(db)

    assert service.for_submission(first.submission_id).id == first.id
    assert [r.id for r in service.by_judge(world.judge1.id)] == [second.id, first.id]
    assert len(service.by_judge(world.judge1.id, limit=1)) == 1
    assert len(service.for_user(world.alice.id, contest_id=world.contest.id)) == 2
    assert service.for_user(world.bob.id) == []


def test_contest_leaderboard_ranks_by_score_then_time(db, world):
    enroll(db, world.contest, world.bob)
    _review(db, world, world.judge1, True, 60)
    _review(db, world, world.judge1, True, 100, submitter=world.bob)
    _review(db, world, world.judge1, True, 40)
    _review(db, world, world.judge1, False, 90, submitter=world.bob)

    board = LeaderboardService(db).contest_leaderboard(world.contest.id)

    # Both on 100; alice's last acceptance came later, so bob ranks first.
    assert [(e.rank, e.username, e.score) for e in board] == [(1, "bob", 100), (2, "alice", 100)]
    assert board[1].problems_solved == 1


def test_global_leaderboard_uses_aggregate_standing(db, world):
    enroll(db, world.contest, world.bob)
    _review(db, world, world.judge1, True, 30)
    _review(db, world, world.judge1, True, 80, submitter=world.bob)
    _review(db, world, world.judge1, False, 50)

    board = LeaderboardService(db).global_leaderboard()

    assert [(e.username, e.score, e.problems_solved) for e in board] == [("bob", 80, 1), ("alice", 30, 1)]
