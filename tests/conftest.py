import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import spirv_autogen as sa  # noqa: E402


@pytest.fixture
def make_enumerant() -> Callable[..., sa.Enumerant]:
    def _make_enumerant(
        symbol: str,
        value: int,
        *,
        capabilities: tuple[str, ...] = (),
        extensions: tuple[str, ...] = (),
        parameters: tuple[sa.Parameter, ...] = (),
    ) -> sa.Enumerant:
        return sa.Enumerant(
            symbol=symbol,
            value=value,
            capabilities=capabilities,
            extensions=extensions,
            parameters=parameters,
        )

    return _make_enumerant


@pytest.fixture
def make_kind() -> Callable[..., sa.OperandKind]:
    def _make_kind(
        kind: str, category: str, enumerants: list[sa.Enumerant] | None = None
    ) -> sa.OperandKind:
        return sa.OperandKind(
            kind=kind, category=category, enumerants=tuple(enumerants or ())
        )

    return _make_kind


@pytest.fixture
def grammar_data() -> dict[str, object]:
    """Decoded JSON for a small but representative core grammar."""
    return {
        "magic_number": "0x07230203",
        "major_version": 1,
        "minor_version": 6,
        "revision": 4,
        "instructions": [
            {"opname": "OpNop", "class": "Miscellaneous", "opcode": 0},
            {"opname": "OpUndef", "opcode": 1},
            {"opname": "OpDecorateId", "opcode": 332},
            {"opname": "OpDecorateIdGOOGLE", "opcode": 332},
        ],
        "operand_kinds": [
            {
                "category": "BitEnum",
                "kind": "ImageOperands",
                "enumerants": [
                    {"enumerant": "None", "value": "0x0000"},
                    {
                        "enumerant": "Bias",
                        "value": "0x0001",
                        "capabilities": ["Shader"],
                        "parameters": [{"kind": "IdRef"}],
                    },
                    {
                        "enumerant": "Grad",
                        "value": "0x0004",
                        "parameters": [{"kind": "IdRef"}, {"kind": "IdRef"}],
                    },
                ],
            },
            {
                "category": "BitEnum",
                "kind": "FPFastMathMode",
                "enumerants": [
                    {"enumerant": "None", "value": "0x0000"},
                    {"enumerant": "NotNaN", "value": "0x0001"},
                ],
            },
            {
                "category": "ValueEnum",
                "kind": "Dim",
                "enumerants": [
                    {"enumerant": "1D", "value": 0, "capabilities": ["Sampled1D"]},
                    {"enumerant": "2D", "value": 1},
                    {"enumerant": "Buffer", "value": 5, "capabilities": ["SampledBuffer"]},
                ],
            },
            {"category": "Id", "kind": "IdRef", "doc": "Reference to an <id>"},
            {
                "category": "ValueEnum",
                "kind": "Capability",
                "enumerants": [
                    {"enumerant": "Matrix", "value": 0},
                    {"enumerant": "Shader", "value": 1, "capabilities": ["Matrix"]},
                    {"enumerant": "Sampled1D", "value": 43},
                    {"enumerant": "SampledBuffer", "value": 46},
                    {
                        "enumerant": "StorageBuffer16BitAccess",
                        "value": 4433,
                        "extensions": ["SPV_KHR_16bit_storage"],
                    },
                    {
                        "enumerant": "StorageUniformBufferBlock16",
                        "value": 4433,
                        "extensions": ["SPV_KHR_16bit_storage"],
                    },
                ],
            },
            {
                "category": "ValueEnum",
                "kind": "ExecutionMode",
                "enumerants": [
                    {
                        "enumerant": "Invocations",
                        "value": 0,
                        "parameters": [
                            {"kind": "LiteralInteger", "name": "Number of invocations"}
                        ],
                    },
                    {"enumerant": "OriginUpperLeft", "value": 7},
                ],
            },
            {"category": "Literal", "kind": "LiteralInteger"},
            {
                "category": "Composite",
                "kind": "PairIdRefIdRef",
                "bases": ["IdRef", "IdRef"],
            },
        ],
    }


@pytest.fixture
def grammar(grammar_data: dict[str, object]) -> sa.Grammar:
    return sa.parse_grammar(grammar_data)


@pytest.fixture
def ext_inst_data() -> dict[str, object]:
    return {
        "copyright": ["Copyright (c) 2014-2024 The Khronos Group Inc."],
        "version": 100,
        "revision": 2,
        "instructions": [
            {"opname": "Round", "opcode": 1, "operands": [{"kind": "IdRef", "name": "x"}]},
            {"opname": "RoundEven", "opcode": 2},
            {"opname": "Trunc", "opcode": 3},
        ],
    }


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, object], Path]:
    def _write_json(name: str, data: object) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write_json


@pytest.fixture
def make_args(tmp_path: Path) -> Callable[..., argparse.Namespace]:
    grammar_path = tmp_path / "spirv.core.grammar.json"
    grammar_path.write_text("{}\n", encoding="utf-8")

    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "grammar": grammar_path,
            "ext_inst": None,
            "output_dir": tmp_path / "out",
            "list_kinds": False,
            "info": None,
            "filter": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args
