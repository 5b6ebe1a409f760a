"""
================================================================================
Playground Page Object
================================================================================

Page object for the self-contained playground document used by the browser
tests. The document is injected with ``page.set_content`` so the suite runs
without an application server; it renders parts of itself late on purpose.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import List

import allure

from autosync.ui_testing.framework.conditions import ElementQuery
from autosync.ui_testing.framework.page_base import BasePage


PLAYGROUND_HTML = """
<!doctype html>
<html>
<head><title>Playground</title></head>
<body>
  <div id="spinner">Loading...</div>

  <form id="login" style="display:none">
    <input id="username" value="prefilled">
    <input name="password" type="password">
    <select name="country">
      <option value="de">Germany</option>
      <option value="fr">France</option>
    </select>
    <button type="button" data-testid="btn-login" disabled>Sign in</button>
  </form>

  <div id="status" data-state="idle"></div>
  <ul id="items"></ul>

  <button type="button" id="delete">Delete</button>
  <button type="button" id="hidden-action" style="display:none">Hidden</button>

  <iframe id="editor" srcdoc="<p id='frame-text'>inside the frame</p>"></iframe>

  <script>
    window.pendingRequests = 2;
    setTimeout(() => { window.pendingRequests = 0; }, 400);

    setTimeout(() => {
      document.getElementById('spinner').style.display = 'none';
      document.getElementById('login').style.display = 'block';
    }, 300);

    setTimeout(() => {
      document.querySelector('[data-testid=btn-login]').disabled = false;
    }, 600);

    document.querySelector('[data-testid=btn-login]').addEventListener('click', () => {
      const status = document.getElementById('status');
      status.dataset.state = 'busy';
      setTimeout(() => {
        status.textContent = 'Welcome, ' + document.getElementById('username').value;
        status.dataset.state = 'done';
        for (const name of ['alpha', 'beta', 'gamma']) {
          const li = document.createElement('li');
          li.textContent = name;
          document.getElementById('items').appendChild(li);
        }
      }, 200);
    });

    // Opened from a timer so the click itself is not blocked by the dialog
    document.getElementById('delete').addEventListener('click', () => {
      setTimeout(() => {
        const confirmed = confirm('Delete everything?');
        document.getElementById('status').textContent = confirmed ? 'deleted' : 'kept';
      }, 50);
    });
  </script>
</body>
</html>
"""


class PlaygroundPage(BasePage):
    """Playground document with late-rendered login form, list, frame and dialog."""

    URL_PATH = "/playground"

    SPINNER = ElementQuery.id("spinner", "Loading spinner")
    USERNAME = ElementQuery.id("username", "Username input")
    PASSWORD = ElementQuery.name("password", "Password input")
    COUNTRY = ElementQuery.name("country", "Country select")
    LOGIN_BUTTON = ElementQuery.test_id("btn-login", "Login button")
    STATUS = ElementQuery.id("status", "Status banner")
    ITEMS = ElementQuery.css("#items li", "Item rows")
    DELETE_BUTTON = ElementQuery.id("delete", "Delete button")
    HIDDEN_ACTION = ElementQuery.id("hidden-action", "Hidden action button")
    EDITOR_FRAME = ElementQuery.css("iframe#editor", "Editor frame")
    FRAME_TEXT = ElementQuery.id("frame-text", "Frame paragraph")

    def load(self) -> "PlaygroundPage":
        """Inject the playground document instead of navigating."""
        with allure.step("Load playground document"):
            self.session.page.set_content(PLAYGROUND_HTML)
            self.session.switch_to_default_content()
        return self

    def is_page_loaded(self) -> bool:
        return not self.actions.is_displayed(self.SPINNER)

    @allure.step("Login as {username}")
    def login(self, username: str, password: str, country: str = "France") -> None:
        self.waits.invisible(self.SPINNER)
        self.actions.type_text(self.USERNAME, username)
        self.actions.type_text(self.PASSWORD, password)
        self.actions.select_by_text(self.COUNTRY, country)
        self.actions.click(self.LOGIN_BUTTON)

    def wait_for_welcome(self) -> str:
        self.waits.attribute_equals(self.STATUS, "data-state", "done")
        return self.actions.get_text(self.STATUS)

    def item_names(self) -> List[str]:
        return [row.inner_text() for row in self.waits.all_visible(self.ITEMS)]

    def frame_text(self) -> str:
        self.actions.switch_to_frame(self.EDITOR_FRAME)
        try:
            return self.actions.get_text(self.FRAME_TEXT)
        finally:
            self.actions.switch_to_default_content()
