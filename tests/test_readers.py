from pathlib import Path

import pytest

from routeguard.collector import collect
from routeguard.errors import MetadataNotFound
from routeguard.metadata import IsGranted, Security
from routeguard.readers import ImportMetadataReader, StaticMetadataReader
from routeguard.routing import load_route_table


@pytest.fixture(params=["import", "static"])
def reader(request, source_root: Path):
    if request.param == "import":
        return ImportMetadataReader([source_root])
    return StaticMetadataReader([source_root])


def test_class_metadata(reader) -> None:
    assert reader.class_metadata("shop.controllers.PostController") == [IsGranted("ROLE_USER")]
    assert reader.class_metadata("shop.controllers.AdminController") == [
        Security("is_granted('ROLE_ADMIN')")
    ]
    assert reader.class_metadata("shop.controllers.PublicController") == []


def test_method_metadata_in_source_order(reader) -> None:
    assert reader.method_metadata("shop.controllers.PostController", "delete") == [
        IsGranted("VIEW"),
        Security("is_granted('ROLE_ADMIN') or is_granted('DELETE', subject.getPost())"),
    ]
    assert reader.method_metadata("shop.controllers.PostController", "index") == []
    assert reader.method_metadata("shop.controllers.AdminController", "dashboard") == [
        IsGranted("AUDIT", "request")
    ]


def test_module_as_controller(reader) -> None:
    assert reader.class_metadata("shop.views") == []
    assert reader.method_metadata("shop.views", "publish") == [IsGranted("ROLE_EDITOR", "page")]


def test_missing_class(reader) -> None:
    with pytest.raises(MetadataNotFound, match='Class "shop.controllers.GhostController" does not exist'):
        reader.class_metadata("shop.controllers.GhostController")

    with pytest.raises(MetadataNotFound):
        reader.class_metadata("nowhere.Controller")


def test_missing_method(reader) -> None:
    with pytest.raises(
        MetadataNotFound,
        match=r"Method shop\.controllers\.PostController::archive\(\) does not exist",
    ):
        reader.method_metadata("shop.controllers.PostController", "archive")


def test_readers_agree_on_full_scan(source_root: Path, routes_file: Path, expected_report: dict) -> None:
    routes = load_route_table(routes_file)

    imported = collect(routes, ImportMetadataReader([source_root]))
    static = collect(routes, StaticMetadataReader([source_root]))

    assert imported.to_dict() == expected_report
    assert static.to_dict() == expected_report
    assert imported.diagnostics == static.diagnostics


def test_static_reader_does_not_import(source_root: Path) -> None:
    (source_root / "shop" / "broken_import.py").write_text(
        "import does_not_exist_anywhere\n"
        "from routeguard.metadata import IsGranted\n\n\n"
        "class Controller:\n"
        "    @IsGranted('ROLE_X')\n"
        "    def run(self):\n"
        "        pass\n",
        encoding="utf-8",
    )

    reader = StaticMetadataReader([source_root])

    assert reader.method_metadata("shop.broken_import.Controller", "run") == [IsGranted("ROLE_X")]


def test_static_reader_reports_syntax_errors(source_root: Path) -> None:
    (source_root / "shop" / "bad.py").write_text("class Controller(:\n", encoding="utf-8")

    with pytest.raises(MetadataNotFound, match="Cannot parse"):
        StaticMetadataReader([source_root]).class_metadata("shop.bad.Controller")


def test_static_reader_module_level_metadata(source_root: Path) -> None:
    (source_root / "shop" / "guarded.py").write_text(
        "from routeguard.metadata import IsGranted\n\n"
        "__security_metadata__ = [IsGranted('ROLE_STAFF')]\n\n\n"
        "def report():\n"
        "    pass\n",
        encoding="utf-8",
    )

    assert StaticMetadataReader([source_root]).class_metadata("shop.guarded") == [IsGranted("ROLE_STAFF")]
    assert ImportMetadataReader([source_root]).class_metadata("shop.guarded") == [IsGranted("ROLE_STAFF")]


def test_import_reader_follows_inherited_methods(source_root: Path) -> None:
    (source_root / "shop" / "inherit.py").write_text(
        "from routeguard.metadata import IsGranted\n\n\n"
        "class Base:\n"
        "    @IsGranted('ROLE_BASE')\n"
        "    def show(self):\n"
        "        pass\n\n\n"
        "class Child(Base):\n"
        "    pass\n",
        encoding="utf-8",
    )

    reader = ImportMetadataReader([source_root])

    assert reader.class_metadata("shop.inherit.Child") == []
    assert reader.method_metadata("shop.inherit.Child", "show") == [IsGranted("ROLE_BASE")]


def test_static_reader_honours_coding_cookie(source_root: Path) -> None:
    (source_root / "shop" / "legacy.py").write_bytes(
        "# -*- coding: latin-1 -*-\n"
        "from routeguard.metadata import IsGranted\n\n\n"
        "class Controller:\n"
        "    '''Caf\xe9 orders.\n\n"
        "    @IsGranted('ROLE_CAF\xc9')\n"
        "    '''\n".encode("latin-1")
    )

    reader = StaticMetadataReader([source_root])

    assert reader.class_metadata("shop.legacy.Controller") == [IsGranted("ROLE_CAF\xc9")]


def test_static_reader_reports_undecodable_files(source_root: Path) -> None:
    (source_root / "shop" / "garbled.py").write_bytes(b"class Controller:\n    name = '\xff\xfe'\n")

    with pytest.raises(MetadataNotFound, match="Cannot parse"):
        StaticMetadataReader([source_root]).class_metadata("shop.garbled.Controller")


def test_unreadable_module_skips_only_its_route(reader, source_root: Path) -> None:
    (source_root / "shop" / "synmod.py").write_text("class C(:\n", encoding="utf-8")
    routes = [
        ("broken", "shop.synmod.C::show"),
        ("fine", "shop.controllers.AdminController::dashboard"),
    ]

    result = collect(routes, reader)

    assert result.routes_skipped == 1
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].startswith("Skipping route broken: ")
    assert "shop.controllers.AdminController" in result.controllers


def test_import_reader_reports_modules_that_fail_to_load(source_root: Path) -> None:
    (source_root / "shop" / "synmod.py").write_text("class C(:\n", encoding="utf-8")
    (source_root / "shop" / "needs_dep.py").write_text(
        "import not_installed_dep\n\n\nclass D:\n    pass\n", encoding="utf-8"
    )
    (source_root / "shop" / "explodes.py").write_text("raise RuntimeError('boom')\n", encoding="utf-8")

    reader = ImportMetadataReader([source_root])

    with pytest.raises(MetadataNotFound, match='Class "shop.synmod.C" could not be loaded'):
        reader.class_metadata("shop.synmod.C")
    with pytest.raises(MetadataNotFound, match=r'Class "shop\.needs_dep\.D" could not be loaded: .*not_installed_dep'):
        reader.class_metadata("shop.needs_dep.D")
    with pytest.raises(MetadataNotFound, match='Class "shop.explodes.E" could not be loaded: boom'):
        reader.method_metadata("shop.explodes.E", "show")
