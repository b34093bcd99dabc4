import pytest

from stackline.core.exceptions import (
    MergeNotReadyError,
    StackNotFoundError,
    StaleStackError,
)
from stackline.core.schema.merge import BlockerReason, MergeMethod, RunState
from stackline.core.schema.pr import RepoRef, RequestState
from stackline.core.service import StackService
from tests.fakes import (
    REPO,
    FakeClock,
    FakeLogger,
    FakeRequestCache,
    FakeReviewProvider,
    make_check,
    make_request,
)


def _release_requests():
    return [
        make_request(10, "release/a", "main", title="Release A"),
        make_request(11, "release/b", "release/a", title="Release B"),
    ]


def _service(
    provider: FakeReviewProvider,
    clock: FakeClock,
    logger: FakeLogger,
    cache: FakeRequestCache | None = None,
    **kwargs,
) -> StackService:
    kwargs.setdefault("acting_user", "alice")
    return StackService(
        logger,
        clock,
        provider,
        cache or FakeRequestCache(),
        repositories=(REPO,),
        merge_cooldown=0.0,
        **kwargs,
    )


class TestStackServiceBuildStacks:
    def test_builds_stacks_from_open_requests(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests() + [make_request(12, "fix")])
        service = _service(provider, clock, logger)

        stacks = service.build_stacks(REPO)

        assert [stack.numbers for stack in stacks] == [(10, 11), (12,)]
        assert stacks[0].id == "acme-widgets-10-release-a"
        assert stacks[0].name == "Release A"
        assert stacks[1].name == "Single PR: Change 12"
        assert "Stacks rebuilt" in logger.messages("info")

    def test_second_build_is_served_from_cache(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)

        service.build_stacks(REPO)
        service.build_stacks(REPO)

        assert provider.list_calls == 1

    def test_build_all_stacks_covers_configured_repositories(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        other = RepoRef(owner="acme", name="gadgets")
        provider = FakeReviewProvider(
            _release_requests() + [make_request(3, "feat/g", repo=other)]
        )
        service = StackService(
            logger,
            clock,
            provider,
            FakeRequestCache(),
            acting_user="alice",
            repositories=(REPO, other),
        )

        stacks = service.build_all_stacks()

        assert [stack.id for stack in stacks] == [
            "acme-widgets-10-release-a",
            "acme-gadgets-3-feat-g",
        ]


class TestStackServiceGetStack:
    def test_returns_stack_by_id(self, clock: FakeClock, logger: FakeLogger) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)

        stack = service.get_stack(REPO, "acme-widgets-10-release-a")

        assert stack.numbers == (10, 11)

    def test_bookmarked_id_survives_a_new_sibling_fork(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        cache = FakeRequestCache()
        service = _service(provider, clock, logger, cache)
        bookmarked = service.build_stacks(REPO)[0].id

        provider.open_request(make_request(12, "hotfix", "release/a"))
        cache.invalidate(REPO)

        stack = service.get_stack(REPO, bookmarked)
        assert bookmarked == "acme-widgets-10-release-a"
        assert stack.numbers == (10, 11)
        assert not stack.forked
        sibling = service.get_stack(REPO, "acme-widgets-10-release-a--hotfix")
        assert sibling.numbers == (10, 12)

    def test_stack_is_stale_once_root_merges(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        cache = FakeRequestCache()
        service = _service(provider, clock, logger, cache)
        stack_id = service.build_stacks(REPO)[0].id

        provider.merge_request(REPO, 10, MergeMethod.SQUASH)
        cache.invalidate(REPO)

        with pytest.raises(StaleStackError) as raised:
            service.get_stack(REPO, stack_id)
        assert raised.value.root_number == 10
        assert raised.value.stack_id == "acme-widgets-10-release-a"

    def test_unknown_id_is_not_found(self, clock: FakeClock, logger: FakeLogger) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)

        with pytest.raises(StackNotFoundError) as raised:
            service.get_stack(REPO, "nope")
        assert not isinstance(raised.value, StaleStackError)
        assert raised.value.message == 'Stack with ID "nope" not found'

    def test_vanished_fork_of_open_root_is_not_found(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)

        with pytest.raises(StackNotFoundError) as raised:
            service.get_stack(REPO, "acme-widgets-10-release-a--gone")
        assert not isinstance(raised.value, StaleStackError)

    def test_unknown_root_number_is_not_found(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)

        with pytest.raises(StackNotFoundError):
            service.get_stack(REPO, "acme-widgets-404-release-z")
        assert provider.get_request_calls == [404]


class TestStackServiceReadiness:
    def test_check_runs_prefer_cache(self, clock: FakeClock, logger: FakeLogger) -> None:
        provider = FakeReviewProvider(
            _release_requests(), check_runs={11: [make_check("fresh")]}
        )
        cache = FakeRequestCache()
        cache.store_check_runs(REPO, 10, [make_check("cached")])
        service = _service(provider, clock, logger, cache)

        check_runs = service.check_runs_for(REPO, [10, 11])

        assert check_runs[10][0].name == "cached"
        assert check_runs[11][0].name == "fresh"
        assert provider.check_run_calls == [11]
        assert cache.get_check_runs(REPO, 11) == check_runs[11]

    def test_check_runs_can_skip_missing(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)

        check_runs = service.check_runs_for(REPO, [10, 11], fetch_missing=False)

        assert check_runs == {}
        assert provider.check_run_calls == []

    def test_unverified_requests_are_reported(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)
        stack = service.get_stack(REPO, "acme-widgets-10-release-a")

        verdict = service.evaluate_readiness(stack, 11, fetch_missing=False)

        assert verdict.is_ready
        assert verdict.unverified == (10, 11)

    def test_closed_base_ancestor_blocks_root(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(
            [
                make_request(5, "feat/base", state=RequestState.CLOSED),
                make_request(6, "feat/top", "feat/base"),
            ]
        )
        service = _service(provider, clock, logger)
        stack = service.build_stacks(REPO)[0]

        verdict = service.evaluate_readiness(stack, 6)

        assert stack.numbers == (6,)
        assert verdict.reason is BlockerReason.BLOCKED_ANCESTOR_CLOSED
        assert verdict.pr_number == 5


class TestStackServiceMerge:
    def test_full_merge_makes_stack_stale(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)
        stack = service.get_stack(REPO, "acme-widgets-10-release-a")

        events = list(service.run_merge(stack, 11))

        assert events[-1].state is RunState.SUCCEEDED
        assert provider.merge_calls == [
            (10, MergeMethod.SQUASH),
            (11, MergeMethod.SQUASH),
        ]
        with pytest.raises(StaleStackError):
            service.get_stack(REPO, stack.id)

    def test_configured_and_explicit_merge_methods(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(
            _release_requests() + [make_request(12, "fix")]
        )
        service = _service(
            provider, clock, logger, merge_method=MergeMethod.REBASE
        )
        stacks = service.build_stacks(REPO)

        list(service.run_merge(stacks[1], 12))
        list(service.run_merge(stacks[0], 10, MergeMethod.MERGE))

        assert provider.merge_calls == [
            (12, MergeMethod.REBASE),
            (10, MergeMethod.MERGE),
        ]

    def test_not_ready_raises_before_iteration(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger, acting_user="bob")
        stack = service.get_stack(REPO, "acme-widgets-10-release-a")

        with pytest.raises(MergeNotReadyError) as raised:
            service.run_merge(stack, 11)
        assert raised.value.blocker.reason is BlockerReason.NOT_AUTHOR
        assert provider.merge_calls == []

    def test_cancel_and_reentry_during_run(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        provider = FakeReviewProvider(_release_requests())
        service = _service(provider, clock, logger)
        stack = service.get_stack(REPO, "acme-widgets-10-release-a")

        events = service.run_merge(stack, 11)
        assert service.cancel_merge(stack.id) is False
        next(events)

        assert service.evaluate_readiness(stack, 11).reason is (
            BlockerReason.ALREADY_MERGING
        )
        assert service.cancel_merge(stack.id) is True
        final = list(events)[-1]

        assert final.state is RunState.CANCELLED
        assert final.completed == 1
        assert provider.merged_numbers() == [10]
        assert service.cancel_merge(stack.id) is False
