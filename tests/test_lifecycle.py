import pytest

from domain.judging import Conflict, Forbidden, InvalidState, JudgeQueueService, NotFound, SubmissionService
from domain.models import ContestStatus, ParticipantStatus, Review, Submission, SubmissionStatus, User

from conftest import attach, enroll, make_contest, make_problem, make_submission


def _claimed(db, world, judge=None, **overrides):
    judge = judge or world.judge1
    return make_submission(
        db,
        world,
        status=SubmissionStatus.UNDER_REVIEW.value,
        reviewer_id=judge.id,
        **overrides,
    )


# ==================== create ====================

def test_create_returns_pending_submission_with_zero_score(db, world, events):
    service = SubmissionService(db, events)

    submission = service.create(world.problem.id, world.contest.id, world.alice.id, "print(1)")

    assert submission.id is not None
    assert submission.status == SubmissionStatus.PENDING.value
    assert submission.score == 0
    assert submission.reviewer_id is None
    assert submission.created_at is not None
    assert submission.language is None


def test_create_keeps_language_tag(db, world):
    submission = SubmissionService(db).create(
        world.problem.id, world.contest.id, world.alice.id, "int main(){}", language="cpp"
    )
    assert submission.language == "cpp"


def test_create_publishes_created_event(db, world, events):
    submission = SubmissionService(db, events).create(world.problem.id, world.contest.id, world.alice.id, "x = 1")

    assert events.kinds() == ["submission.created"]
    event = events.events[0]
    assert event.submission_id == submission.id
    assert event.status == "PENDING"
    assert event.actor_id == world.alice.id


def test_create_rejects_problem_outside_contest(db, world, events):
    other = make_problem(db, title="Unrelated")

    with pytest.raises(NotFound) as exc:
        SubmissionService(db, events).create(other.id, world.contest.id, world.alice.id, "print(1)")

    assert "not found in this contest" in exc.value.message
    assert db.query(Submission).count() == 0
    assert events.events == []


def test_create_rejects_user_without_enrollment(db, world):
    with pytest.raises(Forbidden) as exc:
        SubmissionService(db).create(world.problem.id, world.contest.id, world.bob.id, "print(1)")
    assert "not enrolled" in exc.value.message


def test_create_rejects_inactive_enrollment(db, world):
    enroll(db, world.contest, world.bob, ParticipantStatus.WITHDRAWN)

    with pytest.raises(Forbidden):
        SubmissionService(db).create(world.problem.id, world.contest.id, world.bob.id, "print(1)")


@pytest.mark.parametrize("status", [ContestStatus.PLANNED, ContestStatus.ENDED, ContestStatus.ARCHIVED])
def test_create_rejects_contest_that_is_not_running(db, world, status):
    contest = make_contest(db, name=f"{status.value} contest", status=status)
    attach(db, contest, world.problem)
    enroll(db, contest, world.alice)

    with pytest.raises(InvalidState) as exc:
        SubmissionService(db).create(world.problem.id, contest.id, world.alice.id, "print(1)")
    assert "not currently running" in exc.value.message


def test_create_checks_problem_before_enrollment_before_contest_state(db, world):
    ended = make_contest(db, name="Old", status=ContestStatus.ENDED)

    # Neither associated nor enrolled nor running: the association is reported first.
    with pytest.raises(NotFound):
        SubmissionService(db).create(world.problem.id, ended.id, world.bob.id, "print(1)")

    attach(db, ended, world.problem)
    with pytest.raises(Forbidden):
        SubmissionService(db).create(world.problem.id, ended.id, world.bob.id, "print(1)")


# ==================== finalize_review ====================

def test_accepted_review_updates_submission_and_aggregate(db, world, events):
    submission = _claimed(db, world)

    review = SubmissionService(db, events).finalize_review(
        submission.id, world.judge1.id, correct=True, score_awarded=100, remarks="clean"
    )

    db.expire_all()
    stored = db.get(Submission, submission.id)
    alice = db.get(User, world.alice.id)
    assert stored.status == SubmissionStatus.ACCEPTED.value
    assert stored.score == 100
    assert stored.reviewer_id == world.judge1.id
    assert alice.score == 100
    assert alice.problems_solved_count == 1

    assert review.correct is True
    assert review.score_awarded == 100
    assert review.remarks == "clean"
    assert review.submitter_id == world.alice.id
    assert review.problem_id == world.problem.id
    assert review.reviewer_id == world.judge1.id
    assert events.kinds() == ["review.completed", "leaderboard.updated"]
    assert events.events[1].score == 100


def test_rejected_review_never_changes_aggregate(db, world, events):
    submission = _claimed(db, world)

    SubmissionService(db, events).finalize_review(submission.id, world.judge1.id, correct=False, score_awarded=40)

    db.expire_all()
    stored = db.get(Submission, submission.id)
    alice = db.get(User, world.alice.id)
    assert stored.status == SubmissionStatus.REJECTED.value
    # Partial credit is kept on the submission as a record only.
    assert stored.score == 40
    assert alice.score == 0
    assert alice.problems_solved_count == 0
    assert events.kinds() == ["review.completed"]


def test_review_of_unknown_submission_is_not_found(db, world):
    with pytest.raises(NotFound):
        SubmissionService(db).finalize_review(999, world.judge1.id, correct=True, score_awarded=10)


def test_review_of_pending_submission_is_invalid(db, world):
    submission = make_submission(db, world)

    with pytest.raises(InvalidState) as exc:
        SubmissionService(db).finalize_review(submission.id, world.judge1.id, correct=True, score_awarded=10)
    assert "not under review" in exc.value.message


def test_review_by_other_judge_is_invalid(db, world):
    submission = _claimed(db, world, judge=world.judge1)

    with pytest.raises(InvalidState) as exc:
        SubmissionService(db).finalize_review(submission.id, world.judge2.id, correct=True, score_awarded=10)

    assert "not assigned to this judge" in exc.value.message
    db.expire_all()
    assert db.get(Submission, submission.id).status == SubmissionStatus.UNDER_REVIEW.value
    assert db.query(Review).count() == 0


def test_second_review_is_refused(db, world):
    submission = _claimed(db, world)
    service = SubmissionService(db)
    service.finalize_review(submission.id, world.judge1.id, correct=True, score_awarded=50)

    with pytest.raises(InvalidState):
        service.finalize_review(submission.id, world.judge1.id, correct=False, score_awarded=0)

    assert db.query(Review).filter(Review.submission_id == submission.id).count() == 1


def test_review_score_above_problem_maximum_is_refused(db, world):
    submission = _claimed(db, world)

    with pytest.raises(InvalidState) as exc:
        SubmissionService(db).finalize_review(submission.id, world.judge1.id, correct=True, score_awarded=101)
    assert "between 0 and 100" in exc.value.message


def test_review_with_mismatched_submitter_is_refused(db, world):
    submission = _claimed(db, world)

    with pytest.raises(InvalidState):
        SubmissionService(db).finalize_review(
            submission.id, world.judge1.id, correct=True, score_awarded=10, submitter_id=world.bob.id
        )


def test_review_with_mismatched_problem_is_refused(db, world):
    submission = _claimed(db, world)
    other = make_problem(db, title="Unrelated")

    with pytest.raises(InvalidState) as exc:
        SubmissionService(db).finalize_review(
            submission.id, world.judge1.id, correct=True, score_awarded=10, problem_id=other.id
        )

    assert "problem does not match" in exc.value.message
    db.expire_all()
    assert db.get(Submission, submission.id).status == SubmissionStatus.UNDER_REVIEW.value
    assert db.query(Review).count() == 0
    assert db.get(User, world.alice.id).score == 0


def test_review_write_is_conditional_on_prior_state(db, session_factory, world):
    submission = _claimed(db, world)
    service = SubmissionService(db)

    # The judge releases the submission from another session after our read.
    original_get = service.get

    def get_then_release(submission_id):
        found = original_get(submission_id)
        other = session_factory()
        try:
            assert JudgeQueueService(other).release(submission_id, world.judge1.id)
        finally:
            other.close()
        return found

    service.get = get_then_release

    with pytest.raises(InvalidState) as exc:
        service.finalize_review(submission.id, world.judge1.id, correct=True, score_awarded=10)

    assert "no longer under review" in exc.value.message
    db.expire_all()
    assert db.query(Review).count() == 0
    assert db.get(User, world.alice.id).score == 0


# ==================== assign_to_judge ====================

def test_assign_to_judge_moves_submission_under_review(db, world, events):
    submission = make_submission(db, world)

    assigned = SubmissionService(db, events).assign_to_judge(submission.id, world.judge2.id)

    assert assigned.status == SubmissionStatus.UNDER_REVIEW.value
    assert assigned.reviewer_id == world.judge2.id
    assert events.kinds() == ["submission.claimed"]


def test_assign_to_judge_refuses_already_assigned(db, world):
    submission = _claimed(db, world)

    with pytest.raises(InvalidState) as exc:
        SubmissionService(db).assign_to_judge(submission.id, world.judge2.id)
    assert "already assigned" in exc.value.message


def test_assign_to_judge_unknown_submission(db, world):
    with pytest.raises(NotFound):
        SubmissionService(db).assign_to_judge(12345, world.judge1.id)


def test_assign_to_judge_reports_conflict_when_race_lost(db, session_factory, world):
    submission = make_submission(db, world)
    service = SubmissionService(db)
    original_get = service.get

    def get_then_lose_race(submission_id):
        found = original_get(submission_id)
        other = session_factory()
        try:
            assert JudgeQueueService(other).claim(submission_id, world.judge2.id).success
        finally:
            other.close()
        return found

    service.get = get_then_lose_race

    with pytest.raises(Conflict):
        service.assign_to_judge(submission.id, world.judge1.id)


# ==================== queries ====================

def test_list_filters_and_paginates_newest_first(db, world):
    for _ in range(3):
        make_submission(db, world)
    make_submission(db, world, status=SubmissionStatus.ACCEPTED.value, reviewer_id=world.judge1.id, score=70)

    service = SubmissionService(db)
    page = service.list(page=1, limit=2)
    assert page.total == 4
    assert page.total_pages == 2
    assert len(page.items) == 2
    assert page.items[0].id > page.items[1].id

    from domain.judging import SubmissionFilters

    accepted = service.list(SubmissionFilters(status=SubmissionStatus.ACCEPTED))
    assert [s.score for s in accepted.items] == [70]


def test_contest_statistics_counts_each_status(db, world):
    make_submission(db, world)
    _claimed(db, world)
    make_submission(db, world, status=SubmissionStatus.ACCEPTED.value, reviewer_id=world.judge1.id, score=80)
    make_submission(db, world, status=SubmissionStatus.ACCEPTED.value, reviewer_id=world.judge1.id, score=60)
    make_submission(db, world, status=SubmissionStatus.REJECTED.value, reviewer_id=world.judge2.id, score=0)

    stats = SubmissionService(db).contest_statistics(world.contest.id)

    assert stats == {
        "total": 5,
        "pending": 1,
        "under_review": 1,
        "accepted": 2,
        "rejected": 1,
        "average_score": 70.0,
    }


def test_history_for_user_is_scoped(db, world):
    make_submission(db, world)
    make_submission(db, world, submitter_id=world.bob.id)

    history = SubmissionService(db).history_for(world.alice.id)
    assert [s.submitter_id for s in history] == [world.alice.id]


# ==================== event delivery ====================

class FailingPublisher:
    def __init__(self):
        self.attempts = 0

    def publish(self, event) -> None:
        self.attempts += 1
        raise RuntimeError("event channel is down")


def test_publisher_failures_never_reach_the_caller(db, world):
    events = FailingPublisher()
    submissions = SubmissionService(db, events)
    queue = JudgeQueueService(db, events)

    submission = submissions.create(world.problem.id, world.contest.id, world.alice.id, "print(1)")
    assert queue.claim(submission.id, world.judge1.id).success
    assert queue.release(submission.id, world.judge1.id) is True
    assert queue.claim(submission.id, world.judge2.id).success
    review = submissions.finalize_review(submission.id, world.judge2.id, correct=True, score_awarded=70)

    # created, claimed, released, claimed, review completed, leaderboard updated
    assert events.attempts == 6
    db.expire_all()
    stored = db.get(Submission, submission.id)
    assert stored.status == SubmissionStatus.ACCEPTED.value
    assert stored.reviewer_id == world.judge2.id
    assert stored.score == 70
    assert db.get(Review, review.id).submission_id == submission.id
    assert db.get(User, world.alice.id).score == 70
