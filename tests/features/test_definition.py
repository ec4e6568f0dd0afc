"""
Tests for the goto-definition feature.

Uses the SolidityTestHarness for clean, declarative tests.
"""

import asyncio

import pytest
from lsprotocol.types import (
    DefinitionParams,
    LocationLink,
    Position,
    TextDocumentIdentifier,
)

from aspic.project import Project, QueryContext
from aspic.server import goto_definition
from tests.conftest import DiskBufferProvider, line_of

TOKEN = """pragma solidity ^0.8.0;

contract Token {
    uint256 public totalSupply;
    mapping(address => uint256) balances;
    event Transfer(address to, uint256 amount);
    struct Holder {
        address account;
    }
    enum State { Active, Paused }
    Holder[] holders;
    mapping(address => Holder) byAccount;
    State state;

    modifier onlyActive() {
        require(state == State.Active);
        _;
    }

    function mint(uint256 amount) public onlyActive {
        totalSupply += amount;
        balances[msg.sender] += amount;
        emit Transfer(msg.sender, amount);
        helper(amount);
    }

    function helper(uint256 amount) internal {
        Holder memory h = Holder(msg.sender);
    }
}
"""

BASE = """pragma solidity ^0.8.0;

interface IOwned {
    function owner() external view returns (address);
}

contract Base {
    uint256 public counter;

    function bump() public {
        counter += 1;
    }
}
"""

LIB = """pragma solidity ^0.8.0;

library Math {
    struct Pair {
        uint256 a;
        uint256 b;
    }
    enum Mode { Fast, Slow }

    function add(uint256 x, uint256 y) internal pure returns (uint256) {
        return x + y;
    }
}
"""

OTHER = """pragma solidity ^0.8.0;

contract Other {
    function bump() public {}
}
"""

ERC20 = """pragma solidity ^0.8.0;

contract ERC20 {
    uint256 public supply;
}
"""

MAIN = """pragma solidity ^0.8.0;

import "./Base.sol";
import "./Lib.sol";
import "./Other.sol";
import "./Missing.sol";
import "@oz/token/ERC20.sol";

contract Main is Base, IOwned {
    using Math for uint256;
    using Math for Math.Pair;

    Math.Pair pair;
    Math.Mode mode;

    function run() public {
        bump();
        counter = counter + 1;
        uint256 total = Math.add(1, 2);
        this.bump();
    }
}
"""


@pytest.fixture
def token(solidity_harness):
    solidity_harness.write("Token.sol", TOKEN)
    return solidity_harness


@pytest.fixture
def project(solidity_harness):
    solidity_harness.write("Base.sol", BASE)
    solidity_harness.write("Lib.sol", LIB)
    solidity_harness.write("Other.sol", OTHER)
    solidity_harness.write("node_modules/@oz/token/ERC20.sol", ERC20)
    solidity_harness.write("Main.sol", MAIN)
    return solidity_harness


class TestSingleFile:
    """Definitions declared in the queried file."""

    def test_state_variable(self, token):
        assert token.targets("Token.sol", "totalSupply +=") == [
            ("Token.sol", line_of(TOKEN, "uint256 public totalSupply"))
        ]

    def test_indexed_variable_object(self, token):
        assert token.targets("Token.sol", "balances[msg") == [
            ("Token.sol", line_of(TOKEN, "mapping(address => uint256) balances"))
        ]

    def test_variable_in_modifier(self, token):
        assert token.targets("Token.sol", "state ==") == [
            ("Token.sol", line_of(TOKEN, "State state;"))
        ]

    def test_event(self, token):
        assert token.targets("Token.sol", "Transfer(msg") == [
            ("Token.sol", line_of(TOKEN, "event Transfer"))
        ]

    def test_function_call(self, token):
        assert token.targets("Token.sol", "helper(amount)") == [
            ("Token.sol", line_of(TOKEN, "function helper"))
        ]

    def test_struct_constructor(self, token):
        assert token.targets("Token.sol", "Holder(msg") == [
            ("Token.sol", line_of(TOKEN, "struct Holder"))
        ]

    def test_modifier_invocation(self, token):
        assert token.targets("Token.sol", "onlyActive {") == [
            ("Token.sol", line_of(TOKEN, "modifier onlyActive"))
        ]

    def test_local_variable_type(self, token):
        assert token.targets("Token.sol", "Holder memory") == [
            ("Token.sol", line_of(TOKEN, "struct Holder"))
        ]

    def test_array_element_type(self, token):
        assert token.targets("Token.sol", "Holder[]") == [
            ("Token.sol", line_of(TOKEN, "struct Holder"))
        ]

    def test_mapping_value_type(self, token):
        assert token.targets("Token.sol", "Holder) byAccount") == [
            ("Token.sol", line_of(TOKEN, "struct Holder"))
        ]

    def test_enum_type(self, token):
        assert token.targets("Token.sol", "State state;") == [
            ("Token.sol", line_of(TOKEN, "enum State"))
        ]

    def test_call_argument_has_no_definition(self, solidity_harness):
        source = """contract A {
    uint total;
    function f(uint v) public {}
    function g() public {
        f(total);
    }
}
"""
        solidity_harness.write("A.sol", source)
        assert solidity_harness.definition("A.sol", "total);") == []
        assert solidity_harness.targets("A.sol", "f(total)") == [
            ("A.sol", line_of(source, "function f"))
        ]

    def test_file_level_struct(self, solidity_harness):
        source = "struct Point { uint x; }\ncontract A { Point p; }\n"
        solidity_harness.write("Point.sol", source)
        assert solidity_harness.targets("Point.sol", "Point p") == [("Point.sol", 0)]

    def test_declaration_name_has_no_definition(self, token):
        assert token.definition("Token.sol", "mint(uint256") == []

    def test_elementary_type_has_no_definition(self, token):
        assert token.definition("Token.sol", "uint256 public totalSupply") == []

    def test_outside_any_statement(self, token):
        assert token.definition("Token.sol", "pragma", shift=0) == []

    def test_location_spans_declaration(self, token):
        (location,) = token.definition("Token.sol", "helper(amount)")
        assert location.uri == token.uri("Token.sol")
        assert location.range.start.character == 4
        assert location.range.end.line == line_of(TOKEN, "    }\n}")
        assert location.target_selection_range == location.range
        assert location.origin_selection_range is None


class TestImports:
    """Definitions for import statements."""

    def test_import_goes_to_start_of_file(self, project):
        (location,) = project.definition("Main.sol", '"./Base.sol"', shift=3)
        assert location.uri == project.uri("Base.sol")
        assert location.range.start == Position(line=0, character=0)
        assert location.range.end == Position(line=0, character=0)

    def test_import_origin_selection_covers_specifier(self, project):
        (location,) = project.definition("Main.sol", '"./Lib.sol"', shift=3)
        line = line_of(MAIN, '"./Lib.sol"')
        origin = location.origin_selection_range
        assert origin.start == Position(line=line, character=len('import "'))
        assert origin.end == Position(
            line=line, character=len('import "./Lib.sol')
        )

    def test_import_on_keyword(self, project):
        (location,) = project.definition("Main.sol", 'import "./Other.sol"')
        assert location.uri == project.uri("Other.sol")

    def test_missing_import(self, project):
        assert project.definition("Main.sol", '"./Missing.sol"', shift=3) == []

    def test_package_import(self, project):
        (location,) = project.definition("Main.sol", "@oz/token")
        assert location.uri == project.uri("node_modules/@oz/token/ERC20.sol")

    def test_import_of_self(self, solidity_harness):
        source = 'import "./Self.sol";\n\ncontract Self {}\n'
        solidity_harness.write("Self.sol", source)
        (location,) = solidity_harness.definition("Self.sol", "./Self")
        assert location.uri == solidity_harness.uri("Self.sol")
        assert location.range.start == Position(line=0, character=0)

    def test_import_from_subdirectory(self, solidity_harness):
        solidity_harness.write("lib/Util.sol", "library Util {}\n")
        source = 'import "../lib/Util.sol";\n'
        solidity_harness.write("src/User.sol", source)
        (location,) = solidity_harness.definition("src/User.sol", "../lib")
        assert location.uri == solidity_harness.uri("lib/Util.sol")


class TestCrossFile:
    """Definitions found through direct imports."""

    def test_inherited_contract(self, project):
        assert project.targets("Main.sol", "Base, IOwned") == [
            ("Base.sol", line_of(BASE, "contract Base"))
        ]

    def test_inherited_interface(self, project):
        assert project.targets("Main.sol", "IOwned {") == [
            ("Base.sol", line_of(BASE, "interface IOwned"))
        ]

    def test_using_library(self, project):
        assert project.targets("Main.sol", "Math for uint256") == [
            ("Lib.sol", line_of(LIB, "library Math"))
        ]

    def test_using_scoped_target_type(self, project):
        assert project.targets("Main.sol", "Pair;\n", shift=0) == [
            ("Lib.sol", line_of(LIB, "struct Pair"))
        ]

    def test_scoped_struct(self, project):
        assert project.targets("Main.sol", "Math.Pair pair", shift=6) == [
            ("Lib.sol", line_of(LIB, "struct Pair"))
        ]

    def test_scoped_enum(self, project):
        assert project.targets("Main.sol", "Math.Mode mode", shift=6) == [
            ("Lib.sol", line_of(LIB, "enum Mode"))
        ]

    def test_inherited_state_variable(self, project):
        assert project.targets("Main.sol", "counter + 1") == [
            ("Base.sol", line_of(BASE, "uint256 public counter"))
        ]

    def test_ambiguous_callee_returns_every_match(self, project):
        assert project.targets("Main.sol", "bump();") == [
            ("Base.sol", line_of(BASE, "function bump")),
            ("Other.sol", line_of(OTHER, "function bump")),
        ]

    def test_member_property_is_variable_or_callee(self, project):
        assert project.targets("Main.sol", "add(1, 2)") == [
            ("Lib.sol", line_of(LIB, "function add"))
        ]

    def test_member_call_through_this(self, project):
        assert project.targets("Main.sol", "bump();", nth=2) == [
            ("Base.sol", line_of(BASE, "function bump")),
            ("Other.sol", line_of(OTHER, "function bump")),
        ]

    def test_member_object_is_variable(self, project):
        assert project.definition("Main.sol", "Math.add") == []

    def test_property_matches_variables_before_callees(self, solidity_harness):
        source = """contract Registry {
    uint256[] entries;
    function entries(uint256 i) public {}
    function read() public {
        this.entries(1);
    }
}
"""
        solidity_harness.write("Registry.sol", source)
        assert solidity_harness.targets("Registry.sol", "entries(1)") == [
            ("Registry.sol", line_of(source, "uint256[] entries")),
            ("Registry.sol", line_of(source, "function entries")),
        ]

    def test_missing_import_does_not_hide_others(self, project):
        # ./Missing.sol is skipped; the package import after it still counts
        source = """import "./Missing.sol";
import "@oz/token/ERC20.sol";

contract Reader {
    function read() public {
        supply;
    }
}
"""
        project.write("Reader.sol", source)
        assert project.targets("Reader.sol", "supply;") == [
            ("node_modules/@oz/token/ERC20.sol", line_of(ERC20, "uint256 public supply"))
        ]

    def test_imports_of_imports_are_not_searched(self, solidity_harness):
        solidity_harness.write("Deep.sol", "contract Deep { uint256 hidden; }\n")
        solidity_harness.write("Middle.sol", 'import "./Deep.sol";\ncontract Middle {}\n')
        source = 'import "./Middle.sol";\ncontract Top { function f() public { hidden; } }\n'
        solidity_harness.write("Top.sol", source)
        assert solidity_harness.definition("Top.sol", "hidden;") == []

    def test_base_in_import_of_import_is_not_found(self, solidity_harness):
        solidity_harness.write("Deep.sol", "contract Deep {}\n")
        solidity_harness.write("Middle.sol", 'import "./Deep.sol";\ncontract Middle {}\n')
        source = 'import "./Middle.sol";\ncontract Top is Deep {}\n'
        solidity_harness.write("Top.sol", source)
        assert solidity_harness.definition("Top.sol", "Deep {") == []


class TestRobustness:
    """Malformed sources and unusual project layouts."""

    def test_unparsable_buffer(self, solidity_harness):
        solidity_harness.write("Garbage.sol", "}}}{{{ ??? ;;\n")
        assert solidity_harness.definition("Garbage.sol", "???") == []

    def test_empty_buffer(self, solidity_harness):
        solidity_harness.write("Empty.sol", "")
        assert solidity_harness.definition("Empty.sol", "", shift=0) == []

    def test_partial_tree_is_used(self, solidity_harness):
        source = """contract Broken {
    uint256 value;
    function f() public {
        value = ;
    }
    function g() public {
        value += 1;
    }
}
"""
        solidity_harness.write("Broken.sol", source)
        assert solidity_harness.targets("Broken.sol", "value += 1") == [
            ("Broken.sol", line_of(source, "uint256 value"))
        ]

    def test_unparsable_import_contributes_nothing(self, solidity_harness):
        solidity_harness.write("Bad.sol", "}}} ???\n")
        solidity_harness.write("Good.sol", "contract Good { uint256 shared; }\n")
        source = """import "./Bad.sol";
import "./Good.sol";
contract User {
    function f() public { shared; }
}
"""
        solidity_harness.write("User.sol", source)
        assert solidity_harness.targets("User.sol", "shared;") == [
            ("Good.sol", 0)
        ]

    def test_import_cycle(self, solidity_harness):
        solidity_harness.write("A.sol", 'import "./B.sol";\ncontract A is Missing {}\n')
        solidity_harness.write("B.sol", 'import "./A.sol";\ncontract B {}\n')
        assert solidity_harness.definition("A.sol", "Missing {") == []

    def test_same_query_twice_is_identical(self, project):
        first = project.definition("Main.sol", "bump();")
        second = project.definition("Main.sol", "bump();")
        assert first == second
        assert len(first) == 2

    def test_direct_import_walk_stops_at_first_match(self, solidity_harness):
        solidity_harness.write("One.sol", "contract Shared {}\n")
        solidity_harness.write("Two.sol", "contract Two {}\n")
        source = 'import "./One.sol";\nimport "./Two.sol";\ncontract Top is Shared {}\n'
        solidity_harness.write("Top.sol", source)
        buffers = solidity_harness.buffers
        assert solidity_harness.targets("Top.sol", "Shared {") == [("One.sol", 0)]
        assert not any(path.endswith("Two.sol") for path in buffers.opened)


class TestServerHandler:
    """The LSP handler wrapping the definition query."""

    def _params(self, uri: str, line: int, character: int) -> DefinitionParams:
        return DefinitionParams(
            text_document=TextDocumentIdentifier(uri=uri),
            position=Position(line=line, character=character),
        )

    def test_returns_location_links(self, project, mock_language_server):
        ls = mock_language_server
        ls.workspace.get_text_document.return_value = project.document("Main.sol")
        ls.create_query_context.return_value = QueryContext(
            Project(str(project.root)), DiskBufferProvider()
        )
        line = line_of(MAIN, "using Math for uint256")
        params = self._params(project.uri("Main.sol"), line, 11)

        result = asyncio.run(goto_definition(ls, params))

        assert len(result) == 1
        assert isinstance(result[0], LocationLink)
        assert result[0].target_uri == project.uri("Lib.sol")
        assert result[0].target_range.start.line == line_of(LIB, "library Math")

    def test_no_definition_returns_none(self, project, mock_language_server):
        ls = mock_language_server
        ls.workspace.get_text_document.return_value = project.document("Main.sol")
        ls.create_query_context.return_value = QueryContext(
            Project(str(project.root)), DiskBufferProvider()
        )
        params = self._params(project.uri("Main.sol"), 0, 2)

        assert asyncio.run(goto_definition(ls, params)) is None

    def test_collaborator_failure_returns_none(self, project, mock_language_server):
        ls = mock_language_server
        ls.workspace.get_text_document.return_value = project.document("Main.sol")
        failing = Project(str(project.root))
        ls.create_query_context.return_value = QueryContext(failing, DiskBufferProvider())

        async def broken_is_file(path):
            raise OSError("disk gone")

        failing.is_file = broken_is_file
        line = line_of(MAIN, '"./Base.sol"')
        params = self._params(project.uri("Main.sol"), line, 10)

        assert asyncio.run(goto_definition(ls, params)) is None
        ls.logger.error.assert_called_once()
