"""
================================================================================
Synchronization UI Tests (Sync / Playwright)
================================================================================

Browser-level checks of waits and interactions against the playground
document, which renders its form, list, button state and dialog late.

================================================================================
"""

import time

import allure
import pytest

from autosync.ui_testing.framework.conditions import ElementQuery
from autosync.ui_testing.framework.exceptions import WaitTimeoutError
from autosync.ui_testing.framework.poller import WaitSpec
from autosync.ui_testing.framework.session_registry import get_registry
from autosync.ui_testing.pages.playground_page import PlaygroundPage


@allure.epic("UI Testing")
@allure.feature("Synchronization")
@pytest.mark.e2e
class TestPlayground:

    @allure.story("Happy Path")
    @allure.title("Login form rendered late is filled and submitted")
    @allure.severity(allure.severity_level.BLOCKER)
    @pytest.mark.P0
    @pytest.mark.smoke
    def test_login_flow(self, playground: PlaygroundPage):
        playground.login("demo_user", "demo_password", country="France")

        assert playground.wait_for_welcome() == "Welcome, demo_user"
        assert playground.actions.get_attribute(playground.STATUS, "data-state") == "done"
        assert playground.item_names() == ["alpha", "beta", "gamma"]

    @allure.story("Happy Path")
    @allure.title("Typing replaces the previous field value")
    @pytest.mark.P1
    def test_type_text_replaces_value(self, playground: PlaygroundPage):
        playground.actions.type_text(playground.USERNAME, "second")

        value = playground.actions.execute_script(
            "() => document.getElementById('username').value"
        )
        assert value == "second"

    @allure.story("Page State")
    @allure.title("Page reports loaded once the spinner is gone")
    @pytest.mark.P1
    def test_page_loaded_after_spinner(self, playground: PlaygroundPage):
        assert playground.waits.invisible(playground.SPINNER) is True
        assert playground.is_page_loaded()
        assert playground.waits.document_ready() is True

    @allure.story("Page State")
    @allure.title("Custom network signal drains to zero")
    @pytest.mark.P2
    def test_network_idle_with_custom_signal(self, playground: PlaygroundPage):
        assert playground.waits.network_idle("window.pendingRequests") is True
        assert playground.actions.execute_script("window.pendingRequests") == 0

    @allure.story("Frames")
    @allure.title("Frame content is read and focus restored")
    @pytest.mark.P1
    def test_frame_text(self, playground: PlaygroundPage):
        assert playground.frame_text() == "inside the frame"
        assert playground.actions.is_displayed(playground.DELETE_BUTTON)

    @allure.story("Dialogs")
    @allure.title("Confirm dialog is accepted and its text returned")
    @pytest.mark.P1
    def test_accept_confirm(self, playground: PlaygroundPage):
        playground.actions.click(playground.DELETE_BUTTON)

        assert playground.actions.accept_alert() == "Delete everything?"
        assert playground.waits.text_contains(playground.STATUS, "deleted") is True

    @allure.story("Dialogs")
    @allure.title("Confirm dialog is dismissed")
    @pytest.mark.P2
    def test_dismiss_confirm(self, playground: PlaygroundPage):
        playground.actions.click(playground.DELETE_BUTTON)

        assert playground.actions.dismiss_alert() == "Delete everything?"
        assert playground.waits.text_contains(playground.STATUS, "kept") is True

    @allure.story("Negative Path")
    @allure.title("Probe answers at once while click on hidden element times out")
    @pytest.mark.P1
    def test_probe_versus_action_on_hidden_element(self, playground: PlaygroundPage):
        start = time.monotonic()
        assert playground.actions.is_displayed(playground.HIDDEN_ACTION) is False
        assert time.monotonic() - start < 0.5

        with pytest.raises(WaitTimeoutError) as exc_info:
            playground.actions.click(playground.HIDDEN_ACTION, WaitSpec(timeout_ms=1000, poll_interval_ms=100))
        assert "attached but hidden" in exc_info.value.last_state

    @allure.story("Negative Path")
    @allure.title("Missing element times out with the query in the message")
    @pytest.mark.P2
    def test_missing_element_timeout(self, playground: PlaygroundPage):
        ghost = ElementQuery.css("#ghost", "Ghost element")

        with pytest.raises(WaitTimeoutError) as exc_info:
            playground.waits.visible(ghost, WaitSpec(timeout_ms=500, poll_interval_ms=100))
        assert "Ghost element" in str(exc_info.value)


@pytest.mark.e2e
def test_session_is_registered_for_current_thread(session):
    assert get_registry().current() is session
    assert not session.closed
