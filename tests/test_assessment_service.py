"""Tests for the assessment service."""

import asyncio

import pytest

from dao_assessment.core.config import CandidateSeed, ElectionPhase, RubricConfig
from dao_assessment.models import Assessment
from dao_assessment.scoring import Rejection, RejectionKind
from dao_assessment.services import AssessmentService
from dao_assessment.services.storage import InMemoryRecordStore, SQLRecordStore

NOMINATOR = "0xN0MINATOR"


def _traits(technical=40, reliability=25, communication=15, values=20):
    return {
        "technical": technical,
        "reliability": reliability,
        "communication": communication,
        "values": values,
    }


class RacingStore(InMemoryRecordStore):
    """Store whose lookup never sees existing assessments, as under a race."""

    async def find_assessment(self, candidate_id, assessor):
        return None


@pytest.fixture
async def service() -> AssessmentService:
    service = AssessmentService(InMemoryRecordStore())
    await service.nominate("Alice", "0xA11CE", "Builder", NOMINATOR)
    await service.nominate("Bob", "0xB0B", "Reviewer", NOMINATOR)
    return service


class TestSubmit:
    """Tests for assessment submission."""

    async def test_accepts_and_stores(self, service):
        """Test an accepted assessment is persisted."""
        result = await service.submit("alice", "0xvoter", _traits(), "Great")

        assert isinstance(result, Assessment)
        stored = await service.store.find_assessment("alice", "0xvoter")
        assert stored is not None
        assert stored.id == result.id

    async def test_retry_is_duplicate(self, service):
        """Test resubmitting an accepted assessment is refused."""
        first = await service.submit("alice", "0xvoter", _traits())
        retry = await service.submit("alice", "0xvoter", _traits())
        changed = await service.submit("alice", "0xvoter", _traits(25, 25, 25, 25))

        assert isinstance(first, Assessment)
        assert retry.kind is RejectionKind.DUPLICATE_ASSESSMENT
        assert changed.kind is RejectionKind.DUPLICATE_ASSESSMENT
        assert len(await service.store.list_assessments("alice")) == 1

    async def test_store_duplicate_becomes_rejection(self):
        """Test a uniqueness failure at insert is reported as a duplicate."""
        service = AssessmentService(RacingStore())
        await service.nominate("Alice", "0xA11CE", nominated_by=NOMINATOR)

        first = await service.submit("alice", "0xvoter", _traits())
        second = await service.submit("alice", "0xvoter", _traits())

        assert isinstance(first, Assessment)
        assert isinstance(second, Rejection)
        assert second.kind is RejectionKind.DUPLICATE_ASSESSMENT

    async def test_concurrent_submissions(self, service):
        """Test only one of several concurrent identical submissions is stored."""
        results = await asyncio.gather(
            *(service.submit("alice", "0xvoter", _traits()) for _ in range(5))
        )

        accepted = [r for r in results if isinstance(r, Assessment)]
        rejected = [r for r in results if isinstance(r, Rejection)]
        assert len(accepted) == 1
        assert all(r.kind is RejectionKind.DUPLICATE_ASSESSMENT for r in rejected)

    async def test_assessor_case_variant_is_duplicate(self, service):
        """Test the same wallet in another letter case cannot assess twice."""
        first = await service.submit("alice", "0xABCDEF", _traits())
        retry = await service.submit("alice", "0xabcdef", _traits())

        assert isinstance(first, Assessment)
        assert first.assessor == "0xabcdef"
        assert retry.kind is RejectionKind.DUPLICATE_ASSESSMENT
        stats = await service.stats()
        assert stats.total_assessments == 1
        assert stats.unique_assessors == 1

    async def test_non_string_identifiers(self, service):
        """Test identifiers of the wrong type are refused, not raised."""
        result = await service.submit(7, "0xvoter", _traits())

        assert result.kind is RejectionKind.MALFORMED_REQUEST
        assert await service.store.list_all_assessments() == []

    async def test_self_assessment(self, service):
        """Test a candidate cannot assess itself by address."""
        result = await service.submit("alice", "0xa11ce", _traits())
        assert result.kind is RejectionKind.SELF_ASSESSMENT

    async def test_unknown_candidate(self, service):
        """Test assessing an unregistered candidate."""
        result = await service.submit("zoe", "0xvoter", _traits())
        assert result.kind is RejectionKind.UNKNOWN_CANDIDATE

    async def test_missing_fields(self, service):
        """Test absent identifiers are reported before any lookup."""
        result = await service.submit(None, "0xvoter", _traits())
        assert result.kind is RejectionKind.MISSING_FIELD

    async def test_rejection_is_not_stored(self, service):
        """Test refused submissions leave the store untouched."""
        await service.submit("alice", "0xvoter", _traits(30, 25, 15, 20))
        assert await service.store.list_all_assessments() == []

    async def test_feedback_limit_from_rubric(self):
        """Test the service applies the configured rubric."""
        service = AssessmentService(
            InMemoryRecordStore(), rubric=RubricConfig(feedback_max_length=69)
        )
        await service.nominate("Alice", "0xA11CE")

        result = await service.submit("alice", "0xvoter", _traits(), "A" * 70)

        assert result.kind is RejectionKind.FEEDBACK_TOO_LONG


class TestNominate:
    """Tests for nominations."""

    async def test_id_is_slug_of_name(self):
        """Test the candidate id is derived from the name."""
        service = AssessmentService(InMemoryRecordStore())
        result = await service.nominate("Alice Johnson", "0x1", "Hi", NOMINATOR)

        assert result.id == "alice-johnson"
        assert result.nominated_by == NOMINATOR
        assert (await service.get_candidate("alice-johnson")).name == "Alice Johnson"

    @pytest.mark.parametrize(("name", "address"), [("", "0x1"), ("Alice", None), ("  ", "  ")])
    async def test_missing_name_or_address(self, name, address):
        """Test name and address are required."""
        service = AssessmentService(InMemoryRecordStore())
        result = await service.nominate(name, address)

        assert result.kind is RejectionKind.MISSING_FIELD
        assert result.message == "Name and address are required"

    async def test_name_without_slug(self):
        """Test a name with no letters or digits is refused."""
        service = AssessmentService(InMemoryRecordStore())
        result = await service.nominate("???", "0x1")
        assert result.kind is RejectionKind.MISSING_FIELD

    async def test_duplicate_address(self, service):
        """Test an address can only be nominated once."""
        result = await service.nominate("Alicia", "0xa11ce")

        assert result.kind is RejectionKind.DUPLICATE_CANDIDATE
        assert result.message == "Candidate with this address already exists"

    async def test_duplicate_name(self, service):
        """Test a name that slugs to an existing id is refused."""
        result = await service.nominate("ALICE", "0xnew")
        assert result.kind is RejectionKind.DUPLICATE_CANDIDATE


class TestWithdraw:
    """Tests for withdrawing nominations."""

    async def test_nominator_can_withdraw(self, service):
        """Test withdrawal by the nominator in any letter case."""
        result = await service.withdraw("alice", NOMINATOR.lower())

        assert not isinstance(result, Rejection)
        assert result.active is False
        assert [c.id for c in await service.list_candidates()] == ["bob"]
        assert await service.get_candidate("alice") is None

    async def test_other_address_refused(self, service):
        """Test only the nominator may withdraw."""
        result = await service.withdraw("alice", "0xstranger")
        assert result.kind is RejectionKind.NOT_NOMINATOR

    async def test_unknown_candidate(self, service):
        """Test withdrawing an unknown candidate."""
        result = await service.withdraw("zoe", NOMINATOR)
        assert result.kind is RejectionKind.UNKNOWN_CANDIDATE

    async def test_withdraw_twice(self, service):
        """Test a withdrawn candidate cannot be withdrawn again."""
        await service.withdraw("alice", NOMINATOR)
        result = await service.withdraw("alice", NOMINATOR)
        assert result.kind is RejectionKind.UNKNOWN_CANDIDATE

    async def test_missing_requester(self, service):
        """Test the requester is required."""
        result = await service.withdraw("alice", None)
        assert result.kind is RejectionKind.MISSING_FIELD

    async def test_withdrawn_candidate_cannot_be_assessed(self, service):
        """Test assessments for withdrawn candidates are refused."""
        await service.withdraw("alice", NOMINATOR)
        result = await service.submit("alice", "0xvoter", _traits())
        assert result.kind is RejectionKind.UNKNOWN_CANDIDATE


class TestResults:
    """Tests for candidate results, leaderboard, and stats."""

    async def test_no_assessments(self, service):
        """Test results before anyone has assessed."""
        results = await service.candidate_results("alice")

        assert results.score.count == 0
        data = results.to_dict()
        assert data["scores"] is None
        assert data["totalScore"] is None
        assert data["message"] == "No assessments yet"

    async def test_unknown_candidate(self, service):
        """Test results for an unknown candidate are None."""
        assert await service.candidate_results("zoe") is None

    async def test_medians_and_feedback(self, service):
        """Test medians and non-empty feedback in submission order."""
        await service.submit("alice", "0x1", _traits(40, 25, 15, 20), "First")
        await service.submit("alice", "0x2", _traits(30, 30, 20, 20), "")
        await service.submit("alice", "0x3", _traits(50, 20, 10, 20), "Third")

        results = await service.candidate_results("alice")

        assert results.score.scores == {
            "technical": 40,
            "reliability": 25,
            "communication": 15,
            "values": 20,
        }
        assert results.score.total_score == 100
        assert [entry.text for entry in results.feedback] == ["First", "Third"]

    async def test_leaderboard(self, service):
        """Test ranking and the overall assessment count."""
        await service.submit("bob", "0x1", _traits(40, 25, 15, 20))
        await service.submit("bob", "0x2", _traits(30, 30, 20, 20))

        board = await service.leaderboard()

        assert [e.candidate.id for e in board.entries] == ["bob", "alice"]
        assert board.total_assessments == 2
        data = board.to_dict()
        assert data["results"][0]["scores"]["technical"] == 35.0
        assert data["results"][1]["totalScore"] == 0

    async def test_leaderboard_excludes_withdrawn(self, service):
        """Test withdrawn candidates are left off the leaderboard."""
        await service.withdraw("bob", NOMINATOR)
        board = await service.leaderboard()
        assert [e.candidate.id for e in board.entries] == ["alice"]

    async def test_stats(self, service):
        """Test participation counters."""
        await service.submit("alice", "0x1", _traits())
        await service.submit("bob", "0x1", _traits())
        await service.submit("bob", "0x2", _traits())

        stats = await service.stats()

        assert stats.total_candidates == 2
        assert stats.total_assessments == 3
        assert stats.unique_assessors == 2
        assert stats.average_per_candidate == "1.5"

    async def test_stats_empty(self):
        """Test the average with no candidates."""
        stats = await AssessmentService(InMemoryRecordStore()).stats()
        assert stats.average_per_candidate == "0"


class TestSeedCandidates:
    """Tests for default candidates."""

    async def test_seeds_empty_store(self):
        """Test seeds are inserted in order into an empty store."""
        service = AssessmentService(InMemoryRecordStore())
        seeds = [
            CandidateSeed(name="Alice Johnson", address="0x1"),
            CandidateSeed(name="Bob Smith", address="0x2", id="bob"),
        ]

        inserted = await service.seed_candidates(seeds)

        assert inserted == 2
        assert [c.id for c in await service.list_candidates()] == ["alice-johnson", "bob"]

    async def test_skips_populated_store(self, service):
        """Test seeding is a no-op once candidates exist."""
        inserted = await service.seed_candidates([CandidateSeed(name="Carol", address="0x3")])
        assert inserted == 0

    async def test_skips_duplicate_seed(self):
        """Test a duplicate seed is skipped without failing the rest."""
        service = AssessmentService(InMemoryRecordStore())
        seeds = [
            CandidateSeed(name="Alice", address="0x1"),
            CandidateSeed(name="Alicia", address="0x1"),
            CandidateSeed(name="Bob", address="0x2"),
        ]

        assert await service.seed_candidates(seeds) == 2


class TestSQLBackedService:
    """Tests for the service over the SQL store."""

    async def test_full_flow(self, tmp_path):
        """Test nominate, submit, and rank against SQLite."""
        store = SQLRecordStore.from_url(f"sqlite:///{tmp_path / 'assessments.db'}")
        service = AssessmentService(store)
        try:
            await service.nominate("Alice", "0xA11CE", nominated_by=NOMINATOR)
            await service.nominate("Bob", "0xB0B", nominated_by=NOMINATOR)
            await service.submit("alice", "0x1", _traits(10, 20, 30, 40))
            await service.submit("alice", "0x2", _traits(20, 30, 40, 10))

            retry = await service.submit("alice", "0x2", _traits())
            board = await service.leaderboard()

            assert retry.kind is RejectionKind.DUPLICATE_ASSESSMENT
            assert board.entries[0].candidate.id == "alice"
            assert board.entries[0].score.scores["technical"] == 15.0
            assert board.total_assessments == 2
        finally:
            await store.close()


class TestElectionPhase:
    """Tests for phase gating of nominations and assessments."""

    @pytest.mark.parametrize("phase", [ElectionPhase.INACTIVE, ElectionPhase.ASSESSMENT])
    async def test_nomination_closed(self, phase):
        """Test nominations are refused outside the nomination window."""
        service = AssessmentService(InMemoryRecordStore(), phase=phase)

        result = await service.nominate("Alice", "0xA11CE", "Builder", NOMINATOR)

        assert result.kind is RejectionKind.WRONG_PHASE
        assert result.message == "Wrong phase"
        assert await service.list_candidates() == []

    @pytest.mark.parametrize("phase", [ElectionPhase.INACTIVE, ElectionPhase.NOMINATION])
    async def test_assessment_closed(self, service, phase):
        """Test assessments are refused outside the assessment window."""
        service.phase = phase

        result = await service.submit("alice", "0xvoter", _traits())

        assert result.kind is RejectionKind.WRONG_PHASE
        assert await service.store.list_all_assessments() == []

    async def test_assessment_phase_accepts_submissions(self, service):
        """Test the assessment window accepts submissions."""
        service.phase = ElectionPhase.ASSESSMENT
        result = await service.submit("alice", "0xvoter", _traits())
        assert isinstance(result, Assessment)

    async def test_nomination_phase_accepts_nominations(self):
        """Test the nomination window accepts nominations."""
        service = AssessmentService(InMemoryRecordStore(), phase=ElectionPhase.NOMINATION)
        result = await service.nominate("Carol", "0xC4401", "Hi", NOMINATOR)
        assert result.id == "carol"

    async def test_withdraw_closed_during_assessment(self, service):
        """Test nominations cannot be withdrawn once assessment starts."""
        service.phase = ElectionPhase.ASSESSMENT

        result = await service.withdraw("alice", NOMINATOR)

        assert result.kind is RejectionKind.WRONG_PHASE
        assert (await service.get_candidate("alice")).active is True

    async def test_seeds_ignore_phase(self):
        """Test configured candidates are inserted in any phase."""
        service = AssessmentService(InMemoryRecordStore(), phase=ElectionPhase.INACTIVE)

        inserted = await service.seed_candidates([CandidateSeed(name="Alice", address="0x1")])

        assert inserted == 1


class TestRequiredStatement:
    """Tests for the statement requirement."""

    @pytest.mark.parametrize("statement", [None, "", "   "])
    async def test_blank_statement_refused(self, statement):
        """Test a blank statement is refused when statements are required."""
        service = AssessmentService(
            InMemoryRecordStore(), rubric=RubricConfig(require_statement=True)
        )

        result = await service.nominate("Alice", "0xA11CE", statement, NOMINATOR)

        assert result.kind is RejectionKind.MISSING_FIELD
        assert result.message == "Empty statement"
        assert result.field == "statement"

    async def test_statement_present(self):
        """Test a nomination with a statement is accepted."""
        service = AssessmentService(
            InMemoryRecordStore(), rubric=RubricConfig(require_statement=True)
        )
        result = await service.nominate("Alice", "0xA11CE", "Builder", NOMINATOR)
        assert result.statement == "Builder"

    async def test_statement_optional_by_default(self):
        """Test the default rubric accepts an empty statement."""
        service = AssessmentService(InMemoryRecordStore())
        result = await service.nominate("Alice", "0xA11CE")
        assert result.statement == ""

    async def test_seeds_skip_statement_rule(self):
        """Test seeds without a statement are still inserted."""
        service = AssessmentService(
            InMemoryRecordStore(), rubric=RubricConfig(require_statement=True)
        )
        assert await service.seed_candidates([CandidateSeed(name="Alice", address="0x1")]) == 1


class TestListAssessments:
    """Tests for the full assessment listing."""

    async def test_submission_order(self, service):
        """Test every assessment is listed in submission order."""
        await service.submit("bob", "0x2", _traits())
        await service.submit("alice", "0x1", _traits())

        listed = await service.list_assessments()

        assert [(a.candidate_id, a.assessor) for a in listed] == [("bob", "0x2"), ("alice", "0x1")]
