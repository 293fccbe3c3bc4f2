"""Pytest configuration and fixtures."""

import sys
import textwrap
from pathlib import Path

import pytest

CONTROLLERS = '''
from routeguard.metadata import IsGranted, Security


@IsGranted("ROLE_USER")
class PostController:
    def index(self):
        return "index"

    @Security("is_granted('EDIT', post)")
    def edit(self, post):
        return "edit"

    @IsGranted("VIEW")
    @Security("is_granted('ROLE_ADMIN') or is_granted('DELETE', subject.getPost())")
    def delete(self, post):
        return "delete"


class AdminController:
    """
    @Security("is_granted('ROLE_ADMIN')")
    """

    def dashboard(self):
        """
        @IsGranted("AUDIT", subject="request")
        """


class PublicController:
    def home(self):
        return "home"
'''

VIEWS = '''
from routeguard.metadata import IsGranted


@IsGranted("ROLE_EDITOR", "page")
def publish(page):
    return page


def about():
    return "about"
'''

ROUTES = """
routes:
  post_index:
    controller: "shop.controllers.PostController::index"
  post_edit:
    controller: "shop.controllers.PostController::edit"
  post_delete:
    defaults:
      _controller: "shop.controllers.PostController::delete"
  health: ~
  admin_dashboard:
    controller: "shop.controllers.AdminController::dashboard"
  missing_class:
    controller: "shop.controllers.GhostController::show"
  missing_method:
    controller: "shop.controllers.PostController::archive"
  public_home: "shop.controllers.PublicController::home"
  page_publish: "shop.views::publish"
"""


@pytest.fixture
def source_root(tmp_path: Path):
    """A source tree holding the ``shop`` package with decorated controllers."""
    root = tmp_path / "src"
    package = root / "shop"
    package.mkdir(parents=True)
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "controllers.py").write_text(textwrap.dedent(CONTROLLERS), encoding="utf-8")
    (package / "views.py").write_text(textwrap.dedent(VIEWS), encoding="utf-8")

    yield root

    # Each test writes its own copy; never reuse an import from another test
    for name in [m for m in sys.modules if m == "shop" or m.startswith("shop.")]:
        del sys.modules[name]


@pytest.fixture
def routes_file(tmp_path: Path) -> Path:
    path = tmp_path / "routes.yml"
    path.write_text(ROUTES.lstrip(), encoding="utf-8")
    return path


@pytest.fixture
def expected_report() -> dict:
    """Report for ``routes_file`` scanned against ``source_root``."""
    return {
        "shop.controllers.PostController": {
            "class_security": [{"attribute": "ROLE_USER", "subject": None}],
            "methods": {
                "edit": [
                    {"route": "post_edit", "method_security": {"attribute": "EDIT", "subject": "post"}},
                ],
                "delete": [
                    {"route": "post_delete", "method_security": {"attribute": "VIEW", "subject": None}},
                    {"route": "post_delete", "method_security": {"attribute": "ROLE_ADMIN", "subject": None}},
                    {
                        "route": "post_delete",
                        "method_security": {"attribute": "DELETE", "subject": "subject.getPost()"},
                    },
                ],
            },
        },
        "shop.controllers.AdminController": {
            "class_security": [{"attribute": "ROLE_ADMIN", "subject": None}],
            "methods": {
                "dashboard": [
                    {
                        "route": "admin_dashboard",
                        "method_security": {"attribute": "AUDIT", "subject": "request"},
                    },
                ],
            },
        },
        "shop.views": {
            "methods": {
                "publish": [
                    {
                        "route": "page_publish",
                        "method_security": {"attribute": "ROLE_EDITOR", "subject": "page"},
                    },
                ],
            },
        },
    }
