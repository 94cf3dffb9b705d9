"""测试辅助函数"""

import asyncio

from forwarding_mgt.core.modal import ModalPresenter


class RecordingPresenter(ModalPresenter):
    """记录对话框调用，代替Qt界面"""

    def __init__(self):
        self.shown = []
        self.closed = []
        self.errors = []
        self.refreshed = 0

    def show(self, session):
        self.shown.append(session)

    def close(self, session):
        self.closed.append(session)

    def show_error(self, session, message):
        self.errors.append(message)

    def refresh(self, session):
        self.refreshed += 1


async def settle(rounds: int = 20):
    """让事件循环中排队的任务运行"""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_for_modal(presenter: RecordingPresenter, number: int = 1):
    """等待第 number 个对话框打开"""
    for _ in range(200):
        if len(presenter.shown) >= number:
            await settle()
            return presenter.shown[number - 1]
        await asyncio.sleep(0)
    raise AssertionError("对话框未打开")


def rule_json(rule_id, source_name="A", destination_name="B", keep_images=True):
    return {
        "id": rule_id,
        "source": {"sourceType": "box", "sourceName": source_name, "sourceId": 1},
        "destination": {"destinationType": "box", "destinationName": destination_name, "destinationId": 2},
        "keepImages": keep_images,
    }
