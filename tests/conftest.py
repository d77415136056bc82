import pytest

from flatlayout.layout.descriptor import INDEFINITE, FileDescriptor, build_descriptor, build_section
from flatlayout.table import Table


@pytest.fixture
def site_descriptor() -> FileDescriptor:
    header = build_section(
        widths=[4, None],
        kinds=["integer", "character"],
        names=["SITE", "NAME"],
        role="header",
    )
    body = build_section(
        widths=[8, 4, 8, 8],
        kinds=["character", "integer", "decimal(0)", "decimal(2)"],
        names=["ID", "Var1", "Var2", "Var3"],
        repeat=INDEFINITE,
        constraints={"Var1": {"membership": [1, 2, 5]}},
    )
    return build_descriptor([header, body], doc="site file")


@pytest.fixture
def site_tables() -> list[Table]:
    return [
        Table([{"SITE": 3, "NAME": "A new site"}]),
        Table(
            [
                {"ID": "a", "Var1": 1, "Var2": 8.2, "Var3": 8.2},
                {"ID": "b", "Var1": 1, "Var2": 9.1259, "Var3": 9.1259},
            ]
        ),
    ]
