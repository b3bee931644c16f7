"""History page controller tests.

Runs real restore batches against the in-memory database and the fake Admin
API, awaiting the background batch and the debounced reload explicitly.
"""

import pytest
from conftest import FakeAdminApi, metafield_entry, tag_entry
from sqlmodel import Session

from restorelog.application.executor import MutationExecutor
from restorelog.application.log_view import LogViewController
from restorelog.application.resolver import IdentifierResolver
from restorelog.domain.constants import (
    RESTORE_BANNER_DONE,
    RESTORE_BANNER_RUNNING,
    RESTORE_MODAL_TITLE,
)
from restorelog.domain.entities import BatchPhase
from restorelog.domain.exceptions import (
    LogEntryNotFoundError,
    RestoreInProgressError,
    ValidationError,
)
from restorelog.infrastructure.database.repositories import LogRepository


@pytest.fixture(name="view")
def view_fixture(admin_api: FakeAdminApi, session_factory) -> LogViewController:
    client = admin_api.client()
    return LogViewController(
        IdentifierResolver.for_client(client),
        MutationExecutor.for_client(client),
        session_factory=session_factory,
        refresh_debounce=0,
    )


def test_load_logs_replaces_the_list(view: LogViewController, session: Session):
    repo = LogRepository(session)
    repo.add(tag_entry(("1", ["a"]), log_id=None))
    assert view.load_logs()

    repo.add(tag_entry(("2", ["b"]), log_id=None))
    logs = view.load_logs()

    assert len(logs) == 2
    assert view.logs is logs


def test_toggle_row(view: LogViewController, session: Session):
    LogRepository(session).add(tag_entry(("1", ["a"]), log_id=None))
    view.load_logs()

    assert view.toggle_row(0) == 0
    assert view.toggle_row(0) is None
    with pytest.raises(ValidationError):
        view.toggle_row(5)


def test_request_restore_opens_modal_without_backend_calls(
    view: LogViewController, session: Session, admin_api: FakeAdminApi
):
    stored = LogRepository(session).add(tag_entry(("1", ["a"]), log_id=None))
    view.load_logs()

    modal = view.request_restore(stored.id)

    assert modal.is_open is True
    assert modal.title == RESTORE_MODAL_TITLE
    assert modal.target is not None and modal.target.id == stored.id
    assert admin_api.calls == []


def test_request_restore_unknown_entry(view: LogViewController):
    with pytest.raises(LogEntryNotFoundError):
        view.request_restore(999)


def test_cancel_closes_modal(view: LogViewController, session: Session):
    stored = LogRepository(session).add(tag_entry(("1", ["a"]), log_id=None))
    view.request_restore(stored.id)

    view.cancel_restore()

    assert view.modal.is_open is False
    assert view.modal.target is None


@pytest.mark.asyncio
async def test_confirm_runs_batch_and_refreshes(
    view: LogViewController, session: Session, admin_api: FakeAdminApi
):
    admin_api.on("tagsAdd", {"tagsAdd": {"userErrors": []}})
    repo = LogRepository(session)
    stored = repo.add(
        tag_entry(
            ("gid://shopify/Product/1", ["sale"]),
            ("gid://shopify/Product/2", ["vip"]),
            log_id=None,
        )
    )
    kept = repo.add(tag_entry(("gid://shopify/Product/3", ["keep"]), log_id=None))
    view.load_logs()
    view.request_restore(stored.id)

    task = view.confirm_restore()

    assert task is not None
    assert view.modal.is_open is False
    assert view.popup.visible is True
    assert view.popup.title == RESTORE_BANNER_RUNNING
    assert view.orchestrator.state.phase is BatchPhase.RUNNING

    report = await view.wait_for_batch()
    logs = await view.wait_for_refresh()

    assert report is not None
    assert report.deleted is True
    assert report.succeeded == 2
    assert [log.id for log in logs] == [kept.id]
    assert len(admin_api.calls_for("tagsAdd")) == 2

    popup = view.popup
    assert popup.title == RESTORE_BANNER_DONE
    assert popup.completed == popup.total == 2
    assert popup.percent == 100.0
    assert popup.can_dismiss is True

    view.dismiss_popup()
    assert view.popup.visible is False


@pytest.mark.asyncio
async def test_failed_items_are_surfaced_in_the_popup(
    view: LogViewController,
    session: Session,
    session_factory,
    admin_api: FakeAdminApi,
):
    admin_api.on("node(", {"node": None})
    stored = LogRepository(session).add(
        metafield_entry(("77", {"namespace": "custom", "key": "note"}), log_id=None)
    )
    view.request_restore(stored.id)

    view.confirm_restore()
    await view.wait_for_batch()
    await view.wait_for_refresh()

    popup = view.popup
    assert popup.title == RESTORE_BANNER_DONE
    assert popup.succeeded == 0
    assert [f.item_id for f in popup.failures] == ["77"]
    assert admin_api.calls_for("metafieldsSet") == []
    with session_factory() as fresh:
        assert LogRepository(fresh).find_by_id(stored.id) is None


@pytest.mark.asyncio
async def test_second_confirm_is_rejected_while_running(
    view: LogViewController, session: Session, admin_api: FakeAdminApi
):
    admin_api.on("tagsAdd", {"tagsAdd": {"userErrors": []}})
    repo = LogRepository(session)
    first = repo.add(tag_entry(("gid://shopify/Product/1", ["a"]), log_id=None))
    second = repo.add(tag_entry(("gid://shopify/Product/2", ["b"]), log_id=None))

    view.request_restore(first.id)
    view.confirm_restore()

    view.request_restore(second.id)
    with pytest.raises(RestoreInProgressError):
        view.confirm_restore()
    with pytest.raises(RestoreInProgressError):
        view.dismiss_popup()

    await view.wait_for_batch()
    await view.wait_for_refresh()
    assert repo.find_by_id(second.id) is not None


@pytest.mark.asyncio
async def test_nothing_to_restore_shows_no_popup(
    view: LogViewController, session: Session, admin_api: FakeAdminApi
):
    stored = LogRepository(session).add(tag_entry(("1", []), log_id=None))
    view.request_restore(stored.id)

    assert view.confirm_restore() is None
    assert view.popup.visible is False
    assert admin_api.calls == []
    assert LogRepository(session).find_by_id(stored.id) is not None


@pytest.mark.asyncio
async def test_refresh_is_scheduled_once(view: LogViewController):
    first = view.schedule_refresh()
    second = view.schedule_refresh()

    assert first is second
    await view.wait_for_refresh()
    assert view.refreshing is False


@pytest.mark.asyncio
async def test_entry_deletion_uses_its_own_session(
    view: LogViewController, session: Session, session_factory
):
    stored = LogRepository(session).add(tag_entry(("1", ["a"]), log_id=None))

    assert await view._delete_entry(stored.id) is True
    assert await view._delete_entry(stored.id) is False
    with session_factory() as fresh:
        assert LogRepository(fresh).find_all() == []
