import asyncio

import pytest

from forwarding_mgt.core.exceptions import ModalBusy, ValidationFailed
from forwarding_mgt.core.modal import (
    Cancelled, ConfirmDeleteConfig, DialogController, ModalState, ModalWorkflow, Resolved
)

from helpers import settle, wait_for_modal


class FailingSetup(DialogController):
    async def setup(self, session):
        raise RuntimeError("来源服务不可用")


class SlowSetup(DialogController):
    def __init__(self):
        self.cancelled = False

    async def setup(self, session):
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise


class NeedsInput(DialogController):
    def __init__(self):
        self.value = None

    def build_result(self):
        if self.value is None:
            raise ValidationFailed(["value"])
        return self.value


@pytest.fixture
def workflow(presenter):
    return ModalWorkflow(presenter)


@pytest.mark.asyncio
async def test_confirm_resolves_with_payload(workflow, presenter):
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=2, entity_label_plural="转发规则")))
    session = await wait_for_modal(presenter)

    assert session.view == "confirm_delete"
    assert session.config.message == "确定要删除 2 个转发规则吗？"
    assert session.confirm() is True

    result = await task
    assert result == Resolved(True)
    assert not result.cancelled
    assert presenter.closed == [session]
    assert not workflow.is_open


@pytest.mark.asyncio
async def test_cancel_resolves_cancelled(workflow, presenter):
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=1)))
    session = await wait_for_modal(presenter)

    session.cancel()
    result = await task

    assert isinstance(result, Cancelled)
    assert result.cancelled
    assert result.payload is None
    assert session.state == ModalState.CANCELLED
    assert session.confirm() is False


@pytest.mark.asyncio
async def test_second_open_rejected_while_active(workflow, presenter):
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=1)))
    session = await wait_for_modal(presenter)

    with pytest.raises(ModalBusy):
        await workflow.open(ConfirmDeleteConfig(count=1))

    session.cancel()
    await task
    assert len(presenter.shown) == 1


@pytest.mark.asyncio
async def test_setup_failure_shown_inside_dialog(workflow, presenter):
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=1), FailingSetup()))
    session = await wait_for_modal(presenter)

    assert session.is_open
    assert presenter.errors == ["加载数据失败: 来源服务不可用"]
    assert session.error == "加载数据失败: 来源服务不可用"

    session.cancel()
    assert (await task).cancelled


@pytest.mark.asyncio
async def test_validation_failure_keeps_dialog_open(workflow, presenter):
    controller = NeedsInput()
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=1), controller))
    session = await wait_for_modal(presenter)

    assert session.confirm() is False
    assert session.is_open
    assert presenter.errors == ["请填写: value"]

    controller.value = "ok"
    assert session.confirm() is True
    assert (await task).payload == "ok"
    assert session.error is None


@pytest.mark.asyncio
async def test_dismiss_cancels_pending_modal(workflow, presenter):
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=1)))
    await wait_for_modal(presenter)

    workflow.dismiss()

    assert (await task).cancelled
    assert not workflow.is_open


@pytest.mark.asyncio
async def test_cancelled_caller_cleans_up(workflow, presenter):
    controller = SlowSetup()
    task = asyncio.create_task(workflow.open(ConfirmDeleteConfig(count=1), controller))
    session = await wait_for_modal(presenter)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await settle()

    assert presenter.closed == [session]
    assert session.state == ModalState.CANCELLED
    assert controller.cancelled
    assert not workflow.is_open
