import asyncio
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication, QDialogButtonBox

from forwarding_mgt.core.create_rule import CreateRuleWorkflow
from forwarding_mgt.core.forwarding import build_forwarding_rules_screen
from forwarding_mgt.core.modal import CreateRuleConfig, ModalSession
from forwarding_mgt.ui.components.dialogs import AddForwardingRuleDialog
from forwarding_mgt.ui.components.forwarding_rule_panel import ForwardingRulePanel


@pytest.fixture(scope="module")
def qapp():
    return QApplication.instance() or QApplication([])


@pytest.mark.asyncio
async def test_cleared_selection_clears_table_rows(qapp, api_client, presenter):
    controller = build_forwarding_rules_screen(api_client, presenter, page_size=10)
    panel = ForwardingRulePanel(controller)
    await controller.reload()

    panel.rule_table.selectRow(0)
    assert controller.selection.selection == frozenset({1})
    assert panel._action_buttons["删除"].isEnabled()

    controller.clear_selection()

    assert not panel.rule_table.selectionModel().hasSelection()
    assert not panel._action_buttons["删除"].isEnabled()
    assert controller.selection.is_empty


@pytest.mark.asyncio
async def test_keep_images_checkbox_follows_initial_data(qapp, api_client, presenter):
    workflow = CreateRuleWorkflow(api_client)
    config = CreateRuleConfig(initial_data={"keep_images": False})
    session = ModalSession(config, workflow, presenter, asyncio.get_running_loop().create_future())
    dialog = AddForwardingRuleDialog(session)

    await workflow.setup(session)
    dialog.refresh()

    assert not dialog.keep_images_check.isChecked()
    assert workflow.draft.keep_images is False
    assert dialog.source_combo.count() == 2
    assert not dialog.button_box.button(QDialogButtonBox.Ok).isEnabled()
