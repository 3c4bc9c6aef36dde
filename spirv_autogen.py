"""SPIR-V definitions generator for Rust.

Generates typed Rust definitions from the Khronos SPIR-V JSON grammar.
Produces autogen_spirv.rs plus one module per extended instruction set.

Usage:
    python spirv_autogen.py --grammar spirv.core.grammar.json \\
        --ext-inst GLOp=extinst.glsl.std.450.grammar.json --output-dir src
"""

import argparse
import json
import re
import sys
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
DEFAULT_GRAMMAR = (
    PROJECT_ROOT
    / "external"
    / "SPIRV-Headers"
    / "include"
    / "spirv"
    / "unified1"
    / "spirv.core.grammar.json"
)
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "spirv" / "src"


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class ExtInstSetRequest:
    name: str
    path: Path
    doc: str


@dataclass(frozen=True)
class GenerateConfig:
    grammar: Path
    ext_inst_sets: tuple[ExtInstSetRequest, ...]
    output_dir: Path


@dataclass(frozen=True)
class DiscoveryConfig:
    command: str
    grammar: Path
    filter_text: str | None
    info_kind: str | None


VALID_ERROR_CODES = {
    "INVALID_EXT_INST",
    "INVALID_KIND_NAME",
    "CONFLICT_GENERATE_DISCOVERY",
    "FILTER_WITHOUT_LIST",
    "PATH_NOT_FOUND",
}
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_EXT_INST_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.+)$")


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_path_exists(
    path: Path | None, flag: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"{flag} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {flag} /path/to/resource",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing path for this flag.",
    )


def validate_kind_name(name: str) -> str:
    if _IDENT_RE.match(name):
        return name
    raise ConfigError(
        "INVALID_KIND_NAME",
        f"Invalid operand kind name: {name}",
        "Operand kind names are identifiers such as ImageOperands or Dim.",
    )


def ext_inst_set_label(path: Path) -> str:
    """Return the instruction set name encoded in a grammar file name.

    extinst.glsl.std.450.grammar.json -> glsl.std.450
    """
    label = path.name
    if label.startswith("extinst."):
        label = label[len("extinst.") :]
    for suffix in (".grammar.json", ".json"):
        if label.endswith(suffix):
            label = label[: -len(suffix)]
            break
    return label


def parse_ext_inst_request(raw: str) -> ExtInstSetRequest:
    match = _EXT_INST_RE.match(raw)
    if match is None:
        raise ConfigError(
            "INVALID_EXT_INST",
            f"Invalid --ext-inst value: {raw}",
            "Use NAME=PATH, for example --ext-inst GLOp=extinst.glsl.std.450.grammar.json.",
        )
    name, raw_path = match.groups()
    path = validate_path_exists(Path(raw_path), f"--ext-inst {name}")
    return ExtInstSetRequest(
        name=name,
        path=path,
        doc=f"{ext_inst_set_label(path)} extended instruction opcodes",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Rust SPIR-V definitions from the JSON grammar"
    )

    parser.add_argument("--grammar", type=Path, default=DEFAULT_GRAMMAR)
    parser.add_argument("--ext-inst", action="append", default=None)
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)

    discovery_group = parser.add_mutually_exclusive_group()
    discovery_group.add_argument("--list-kinds", action="store_true", default=False)
    discovery_group.add_argument("--info", type=str, default=None)

    parser.add_argument("--filter", type=str, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig | DiscoveryConfig:
    raw_ext_insts = tuple(args.ext_inst or ())
    has_discovery_command = bool(args.list_kinds or args.info)

    if args.filter and not args.list_kinds:
        raise ConfigError(
            "FILTER_WITHOUT_LIST",
            "--filter requires --list-kinds.",
            "Add --list-kinds or remove --filter.",
        )

    if raw_ext_insts and has_discovery_command:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "Generate flags cannot be combined with discovery flags.",
            "Choose either generate mode or one discovery command.",
        )

    grammar = validate_path_exists(
        args.grammar,
        "--grammar",
        "Clone SPIRV-Headers:\n"
        "  git clone https://github.com/KhronosGroup/SPIRV-Headers.git external/SPIRV-Headers\n"
        "Or pass a custom path: --grammar /your/path/to/spirv.core.grammar.json",
    )

    if has_discovery_command:
        info_kind = validate_kind_name(args.info) if args.info is not None else None
        return DiscoveryConfig(
            command="list-kinds" if args.list_kinds else "info",
            grammar=grammar,
            filter_text=args.filter,
            info_kind=info_kind,
        )

    requests: list[ExtInstSetRequest] = []
    seen_names: set[str] = set()
    seen_filenames: set[str] = {MAIN_HEADER_FILENAME}
    for raw in raw_ext_insts:
        request = parse_ext_inst_request(raw)
        if request.name in seen_names or request.name == OPCODE_ENUM_NAME:
            raise ConfigError(
                "INVALID_EXT_INST",
                f"Duplicate extended instruction set name: {request.name}",
                "Give every --ext-inst a distinct NAME other than Op.",
            )
        filename = ext_inst_filename(request.name)
        if filename in seen_filenames:
            raise ConfigError(
                "INVALID_EXT_INST",
                f"Extended instruction set name {request.name} would be written "
                f"to {filename}, which another output already uses.",
                "Pick a NAME whose snake_case form is unique and not 'spirv'.",
            )
        seen_names.add(request.name)
        seen_filenames.add(filename)
        requests.append(request)

    return GenerateConfig(
        grammar=grammar,
        ext_inst_sets=tuple(requests),
        output_dir=args.output_dir,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Generation errors ---=== #

VALID_GENERATION_ERROR_CODES = {
    "MALFORMED_SYMBOL",
    "UNKNOWN_OPERAND_KIND",
    "MALFORMED_GRAMMAR",
}


class GenerationError(Exception):
    """Fatal grammar problem. Aborts the whole run; nothing is written."""

    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_GENERATION_ERROR_CODES:
            raise ValueError(f"Unknown generation error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class MalformedSymbolError(GenerationError):
    def __init__(self, symbol: str, context: str):
        super().__init__(
            "MALFORMED_SYMBOL",
            f"Grammar symbol {symbol!r} is not a valid {context} identifier.",
            "Fix the symbol in the grammar and re-run.",
        )
        self.symbol = symbol


class UnknownOperandKindError(GenerationError):
    def __init__(self, kind: str):
        super().__init__(
            "UNKNOWN_OPERAND_KIND",
            f"Parameter references unknown operand kind {kind!r}.",
            "Every parameter kind must be declared in operand_kinds.",
        )
        self.kind = kind


class GrammarError(GenerationError):
    def __init__(self, message: str):
        super().__init__(
            "MALFORMED_GRAMMAR",
            message,
            "Check the file against the SPIR-V JSON grammar layout.",
        )


# ===--- Constants ---=== #

BIT_ENUM = "BitEnum"
VALUE_ENUM = "ValueEnum"

OPCODE_ENUM_NAME = "Op"
OPCODE_MARKER = "Op"

# Enumerants of these kinds may start with a digit (Dim has 1D, 2D, 3D).
DIGIT_PREFIXED_KINDS = frozenset({"Dim"})

SPEC_URL = "https://www.khronos.org/registry/spir-v/specs/unified1/SPIRV.html"

RUST_KEYWORDS = {
    "as", "break", "const", "continue", "crate", "else", "enum", "extern",
    "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
    "move", "mut", "pub", "ref", "return", "self", "Self", "static", "struct",
    "super", "trait", "true", "type", "unsafe", "use", "where", "while",
    # 2018+ edition keywords
    "async", "await", "dyn", "try",
    # Reserved for future use
    "abstract", "become", "box", "do", "final", "macro", "override", "priv",
    "typeof", "unsized", "virtual", "yield",
}

_SYMBOL_RE = re.compile(r"^[A-Za-z0-9_]+$")


# ===--- Naming ---=== #


def _split_words(text: str) -> list[str]:
    """Split a grammar symbol on camel-case and underscore boundaries.

    A boundary falls after a lowercase letter followed by an uppercase one,
    and before the last capital of an uppercase run followed by a lowercase
    letter (HTTPServer -> HTTP, Server). Digits continue the current word.
    """
    words: list[str] = []
    for chunk in re.split(r"[^A-Za-z0-9]+", text):
        start = 0
        mode = None
        for i, c in enumerate(chunk[:-1]):
            nxt = chunk[i + 1]
            if c.islower():
                next_mode = "lower"
            elif c.isupper():
                next_mode = "upper"
            else:
                next_mode = mode
            if next_mode == "lower" and nxt.isupper():
                words.append(chunk[start : i + 1])
                start = i + 1
            elif mode == "upper" and c.isupper() and nxt.islower() and i > start:
                words.append(chunk[start:i])
                start = i
            mode = next_mode
        if chunk[start:]:
            words.append(chunk[start:])
    return words


def to_snake_case(text: str) -> str:
    return "_".join(word.lower() for word in _split_words(text))


def to_shouty_snake_case(text: str) -> str:
    return "_".join(word.upper() for word in _split_words(text))


def as_ident(name: str, context: str = "type") -> str:
    if not _IDENT_RE.match(name) or name in RUST_KEYWORDS:
        raise MalformedSymbolError(name, context)
    return name


def prefixed_symbol(kind: str, symbol: str) -> str:
    if kind in DIGIT_PREFIXED_KINDS:
        return kind + symbol
    return symbol


def canonicalize_symbol(raw: str, context: str = "type") -> str:
    """Turn a raw grammar symbol into the identifier used in generated code.

    Contexts:
        "type":   value-enum discriminants and extended-set opcodes, as given.
        "flag":   bit-enum constants, SHOUTY_SNAKE_CASE with NaN kept whole.
        "opcode": main-table opcodes, with the Op marker stripped.

    Raises:
        MalformedSymbolError: If the symbol holds characters outside
            [A-Za-z0-9_] or cannot become an identifier under the rules.
    """
    if not _SYMBOL_RE.match(raw):
        raise MalformedSymbolError(raw, context)
    if context == "flag":
        return as_ident(to_shouty_snake_case(raw).replace("NA_N", "NAN"), context)
    if context == "opcode":
        if not raw.startswith(OPCODE_MARKER) or len(raw) == len(OPCODE_MARKER):
            raise MalformedSymbolError(raw, context)
        return as_ident(raw[len(OPCODE_MARKER) :], context)
    if context == "type":
        return as_ident(raw, context)
    raise ValueError(f"Unknown naming context: {context}")


def spec_link(kind: str) -> str:
    """Markdown link to the kind's section of the SPIR-V specification."""
    symbol = to_snake_case(kind)
    return f"[{kind}]({SPEC_URL}#_a_id_{symbol}_a_{symbol})"


# ===--- Grammar model ---=== #


class Quantifier(Enum):
    ONE = ""
    ZERO_OR_ONE = "?"
    ZERO_OR_MORE = "*"


_RUST_QUANTIFIERS = {
    Quantifier.ONE: "One",
    Quantifier.ZERO_OR_ONE: "ZeroOrOne",
    Quantifier.ZERO_OR_MORE: "ZeroOrMore",
}


@dataclass(frozen=True)
class Parameter:
    kind: str
    quantifier: Quantifier = Quantifier.ONE


@dataclass(frozen=True)
class Enumerant:
    symbol: str
    value: int
    capabilities: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()


@dataclass(frozen=True)
class OperandKind:
    kind: str
    category: str
    enumerants: tuple[Enumerant, ...] = ()


@dataclass(frozen=True)
class Instruction:
    opname: str
    opcode: int


@dataclass(frozen=True)
class Grammar:
    magic_number: int
    major_version: int
    minor_version: int
    revision: int
    operand_kinds: tuple[OperandKind, ...]
    instructions: tuple[Instruction, ...]


@dataclass(frozen=True)
class ExtInstSetGrammar:
    version: int
    revision: int
    instructions: tuple[Instruction, ...]


# ===--- Grammar loading ---=== #


def _parse_int(raw: object, where: str, bits: int = 32) -> int:
    value: int | None = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            value = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            value = None
    if value is None:
        raise GrammarError(f"{where}: expected an integer, got {raw!r}")
    if not 0 <= value < (1 << bits):
        raise GrammarError(f"{where}: {value} does not fit in u{bits}")
    return value


def _require_field(obj: object, key: str, where: str) -> object:
    if not isinstance(obj, dict):
        raise GrammarError(f"{where}: expected an object")
    if key not in obj:
        raise GrammarError(f"{where}: missing '{key}'")
    return obj[key]


def _require_str(obj: object, key: str, where: str) -> str:
    value = _require_field(obj, key, where)
    if not isinstance(value, str):
        raise GrammarError(f"{where}.{key}: expected a string")
    return value


def _optional_list(obj: dict, key: str, where: str) -> list:
    value = obj.get(key, [])
    if not isinstance(value, list):
        raise GrammarError(f"{where}.{key}: expected a list")
    return value


def _string_tuple(obj: dict, key: str, where: str) -> tuple[str, ...]:
    items = _optional_list(obj, key, where)
    for i, item in enumerate(items):
        if not isinstance(item, str):
            raise GrammarError(f"{where}.{key}[{i}]: expected a string")
    return tuple(items)


def parse_parameter(obj: object, where: str) -> Parameter:
    kind = _require_str(obj, "kind", where)
    raw_quantifier = obj.get("quantifier", "")
    try:
        quantifier = Quantifier(raw_quantifier)
    except ValueError:
        raise GrammarError(
            f"{where}.quantifier: unknown quantifier {raw_quantifier!r}"
        ) from None
    return Parameter(kind=kind, quantifier=quantifier)


def parse_enumerant(obj: object, where: str) -> Enumerant:
    symbol = _require_str(obj, "enumerant", where)
    value = _parse_int(_require_field(obj, "value", where), f"{where}.value")
    parameters = tuple(
        parse_parameter(param, f"{where}.parameters[{i}]")
        for i, param in enumerate(_optional_list(obj, "parameters", where))
    )
    return Enumerant(
        symbol=symbol,
        value=value,
        capabilities=_string_tuple(obj, "capabilities", where),
        extensions=_string_tuple(obj, "extensions", where),
        parameters=parameters,
    )


def parse_operand_kind(obj: object, where: str) -> OperandKind:
    kind = _require_str(obj, "kind", where)
    category = _require_str(obj, "category", where)
    enumerants: list[Enumerant] = []
    if category in (BIT_ENUM, VALUE_ENUM):
        for i, e in enumerate(_optional_list(obj, "enumerants", where)):
            e_where = f"{where}.enumerants[{i}]"
            enumerant = parse_enumerant(e, e_where)
            enumerants.append(enumerant)
            # Newer grammars list alternate spellings under "aliases"; they
            # follow their canonical entry exactly like a repeated value.
            enumerants.extend(
                replace(enumerant, symbol=alias)
                for alias in _string_tuple(e, "aliases", e_where)
            )
    return OperandKind(kind=kind, category=category, enumerants=tuple(enumerants))


def parse_instruction(obj: object, where: str) -> Instruction:
    return Instruction(
        opname=_require_str(obj, "opname", where),
        opcode=_parse_int(_require_field(obj, "opcode", where), f"{where}.opcode"),
    )


def _parse_instructions(data: dict) -> tuple[Instruction, ...]:
    instructions: list[Instruction] = []
    for i, obj in enumerate(_optional_list(data, "instructions", "grammar")):
        where = f"instructions[{i}]"
        inst = parse_instruction(obj, where)
        instructions.append(inst)
        instructions.extend(
            replace(inst, opname=alias)
            for alias in _string_tuple(obj, "aliases", where)
        )
    return tuple(instructions)


def parse_grammar(data: object) -> Grammar:
    """Build the Grammar model from a decoded spirv.core.grammar.json."""
    magic_number = _parse_int(
        _require_field(data, "magic_number", "grammar"), "magic_number"
    )
    operand_kinds = tuple(
        parse_operand_kind(kind, f"operand_kinds[{i}]")
        for i, kind in enumerate(_optional_list(data, "operand_kinds", "grammar"))
    )
    return Grammar(
        magic_number=magic_number,
        major_version=_parse_int(
            _require_field(data, "major_version", "grammar"), "major_version", 8
        ),
        minor_version=_parse_int(
            _require_field(data, "minor_version", "grammar"), "minor_version", 8
        ),
        revision=_parse_int(_require_field(data, "revision", "grammar"), "revision", 8),
        operand_kinds=operand_kinds,
        instructions=_parse_instructions(data),
    )


def parse_ext_inst_grammar(data: object) -> ExtInstSetGrammar:
    """Build an ExtInstSetGrammar from a decoded extinst.*.grammar.json."""
    if not isinstance(data, dict):
        raise GrammarError("grammar: expected an object")
    return ExtInstSetGrammar(
        version=_parse_int(data.get("version", 0), "version"),
        revision=_parse_int(data.get("revision", 0), "revision"),
        instructions=_parse_instructions(data),
    )


def load_grammar(path: Path) -> Grammar:
    with open(path, encoding="utf-8") as f:
        return parse_grammar(json.load(f))


def load_ext_inst_grammar(path: Path) -> ExtInstSetGrammar:
    with open(path, encoding="utf-8") as f:
        return parse_ext_inst_grammar(json.load(f))


# ===--- Declarations ---=== #


@dataclass(frozen=True)
class LogicalOperand:
    kind: str
    quantifier: Quantifier


@dataclass(frozen=True)
class EnumVariant:
    name: str
    value: int


@dataclass(frozen=True)
class AliasConst:
    """Named constant bound to an existing discriminant, never a new one."""

    name: str
    target: str


@dataclass(frozen=True)
class ValueEnumDecl:
    """One exhaustive, non-combinable enumeration.

    Attributes:
        name: Type name, e.g. "Dim" or "Op".
        doc: Reference text naming the kind or instruction table.
        variants: Canonical discriminants in grammar order.
        aliases: Later symbols sharing a canonical discriminant's value.
        name_keys: (string key, canonical symbol) pairs accepted by
            from_name, canonical names and alias raw names interleaved in
            grammar order.
        capability_clauses: (capability sequence, canonical symbols) groups.
            Keys compare as sequences, so ("A", "B") and ("B", "A") differ.
        extension_clauses: (extension sequence, canonical symbols) groups.
        operand_clauses: (canonical symbol, operands) for discriminants
            whose first enumerant carries parameters.
        operand_kind: True for operand kinds, False for opcode tables.
            Opcode tables render without string conversion or the
            required_* helpers.
    """

    name: str
    doc: str
    variants: tuple[EnumVariant, ...]
    aliases: tuple[AliasConst, ...] = ()
    name_keys: tuple[tuple[str, str], ...] = ()
    capability_clauses: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = ()
    extension_clauses: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = ()
    operand_clauses: tuple[tuple[str, tuple[LogicalOperand, ...]], ...] = ()
    operand_kind: bool = True

    def from_number(self, number: int) -> str | None:
        for variant in self.variants:
            if variant.value == number:
                return variant.name
        return None

    def from_name(self, name: str) -> str:
        for key, symbol in self.name_keys:
            if key == name:
                return symbol
        raise ValueError(f"{name!r} is not a {self.name} name")

    def value_of(self, symbol: str) -> int:
        for alias in self.aliases:
            if alias.name == symbol:
                symbol = alias.target
                break
        for variant in self.variants:
            if variant.name == symbol:
                return variant.value
        raise KeyError(symbol)

    def required_operands(self, symbol: str) -> tuple[LogicalOperand, ...]:
        canonical = self.from_number(self.value_of(symbol))
        for name, operands in self.operand_clauses:
            if name == canonical:
                return operands
        return ()


@dataclass(frozen=True)
class BitFlag:
    name: str
    value: int


@dataclass(frozen=True)
class BitEnumDecl:
    name: str
    doc: str
    flags: tuple[BitFlag, ...]
    flag_operands: tuple[tuple[str, tuple[LogicalOperand, ...]], ...] = ()

    def value_of(self, flag: str) -> int:
        for bit_flag in self.flags:
            if bit_flag.name == flag:
                return bit_flag.value
        raise KeyError(flag)

    def operands_for(self, value: int, flag: str) -> tuple[LogicalOperand, ...] | None:
        """Operands contributed by flag when its bits are all set in value."""
        bits = self.value_of(flag)
        if value & bits != bits:
            return None
        for name, operands in self.flag_operands:
            if name == flag:
                return operands
        return None


@dataclass(frozen=True)
class FormatConstants:
    magic_number: int
    major_version: int
    minor_version: int
    revision: int

    @property
    def magic_literal(self) -> str:
        return f"0x{self.magic_number:08X}"


@dataclass(frozen=True)
class HeaderUnit:
    constants: FormatConstants
    kinds: tuple[ValueEnumDecl | BitEnumDecl, ...]
    opcodes: ValueEnumDecl


@dataclass(frozen=True)
class ExtInstUnit:
    opcodes: ValueEnumDecl


# ===--- Operand lists ---=== #


def build_operands(
    parameters: tuple[Parameter, ...],
    known_kinds: frozenset[str] | None = None,
) -> tuple[LogicalOperand, ...]:
    operands = []
    for param in parameters:
        if known_kinds is not None and param.kind not in known_kinds:
            raise UnknownOperandKindError(param.kind)
        operands.append(
            LogicalOperand(kind=as_ident(param.kind), quantifier=param.quantifier)
        )
    return tuple(operands)


# ===--- Operand kinds ---=== #


def operand_kind_doc(kind: str) -> str:
    return f"SPIR-V operand kind: {spec_link(kind)}"


def gen_value_enum_operand_kind(
    grammar: OperandKind, known_kinds: frozenset[str] | None = None
) -> ValueEnumDecl:
    """Generate the value enum for one ValueEnum operand kind.

    The first enumerant seen for a value owns the discriminant. Later ones
    become alias constants plus extra from_name keys and contribute nothing
    else: no operands, no capability or extension clause entry.
    """
    kind = as_ident(grammar.kind)

    seen_discriminator: dict[int, str] = {}
    variants: list[EnumVariant] = []
    aliases: list[AliasConst] = []
    name_keys: list[tuple[str, str]] = []
    capability_clauses: dict[tuple[str, ...], list[str]] = {}
    extension_clauses: dict[tuple[str, ...], list[str]] = {}
    operand_clauses: list[tuple[str, tuple[LogicalOperand, ...]]] = []

    for e in grammar.enumerants:
        discriminator = seen_discriminator.get(e.value)
        if discriminator is not None:
            alias = canonicalize_symbol(prefixed_symbol(kind, e.symbol))
            aliases.append(AliasConst(name=alias, target=discriminator))
            name_keys.append((e.symbol, discriminator))
            continue

        name_str = prefixed_symbol(kind, e.symbol)
        name = canonicalize_symbol(name_str)
        seen_discriminator[e.value] = name
        variants.append(EnumVariant(name=name, value=e.value))
        name_keys.append((name_str, name))

        capability_clauses.setdefault(e.capabilities, []).append(name)
        extension_clauses.setdefault(e.extensions, []).append(name)
        if e.parameters:
            operand_clauses.append((name, build_operands(e.parameters, known_kinds)))

    return ValueEnumDecl(
        name=kind,
        doc=operand_kind_doc(kind),
        variants=tuple(variants),
        aliases=tuple(aliases),
        name_keys=tuple(name_keys),
        capability_clauses=tuple(
            (caps, tuple(names)) for caps, names in capability_clauses.items()
        ),
        extension_clauses=tuple(
            (exts, tuple(names)) for exts, names in extension_clauses.items()
        ),
        operand_clauses=tuple(operand_clauses),
    )


def gen_bit_enum_operand_kind(
    grammar: OperandKind, known_kinds: frozenset[str] | None = None
) -> BitEnumDecl:
    kind = as_ident(grammar.kind)
    flags: list[BitFlag] = []
    flag_operands: list[tuple[str, tuple[LogicalOperand, ...]]] = []

    for e in grammar.enumerants:
        symbol = canonicalize_symbol(e.symbol, "flag")
        flags.append(BitFlag(name=symbol, value=e.value))
        if e.parameters:
            flag_operands.append((symbol, build_operands(e.parameters, known_kinds)))

    return BitEnumDecl(
        name=kind,
        doc=operand_kind_doc(kind),
        flags=tuple(flags),
        flag_operands=tuple(flag_operands),
    )


def gen_operand_kind(
    grammar: OperandKind, known_kinds: frozenset[str] | None = None
) -> ValueEnumDecl | BitEnumDecl | None:
    """Returns the declaration for an operand kind, or None for Id/Literal/Composite kinds."""
    if grammar.category == BIT_ENUM:
        return gen_bit_enum_operand_kind(grammar, known_kinds)
    if grammar.category == VALUE_ENUM:
        return gen_value_enum_operand_kind(grammar, known_kinds)
    return None


# ===--- Opcodes ---=== #


def _gen_opcode_enum(
    name: str, instructions: tuple[Instruction, ...], doc: str, context: str
) -> ValueEnumDecl:
    # More than one opname may map to the same opcode.
    seen_discriminator: dict[int, str] = {}
    variants: list[EnumVariant] = []
    aliases: list[AliasConst] = []
    name_keys: list[tuple[str, str]] = []

    for inst in instructions:
        opname = canonicalize_symbol(inst.opname, context)
        discriminator = seen_discriminator.get(inst.opcode)
        if discriminator is not None:
            aliases.append(AliasConst(name=opname, target=discriminator))
            name_keys.append((opname, discriminator))
        else:
            seen_discriminator[inst.opcode] = opname
            variants.append(EnumVariant(name=opname, value=inst.opcode))
            name_keys.append((opname, opname))

    return ValueEnumDecl(
        name=as_ident(name),
        doc=doc,
        variants=tuple(variants),
        aliases=tuple(aliases),
        name_keys=tuple(name_keys),
        operand_kind=False,
    )


def gen_opcode_table(
    instructions: tuple[Instruction, ...],
    name: str = OPCODE_ENUM_NAME,
    doc: str | None = None,
) -> ValueEnumDecl:
    """Main instruction table. Opnames lose their Op marker."""
    if doc is None:
        doc = f"SPIR-V {spec_link('instructions')} opcodes"
    return _gen_opcode_enum(name, instructions, doc, "opcode")


def gen_ext_inst_opcodes(
    name: str, grammar: ExtInstSetGrammar, doc: str
) -> ValueEnumDecl:
    """Extended instruction set table. Opnames are used as-is."""
    return _gen_opcode_enum(name, grammar.instructions, doc, "type")


# ===--- Header assembly ---=== #


def gen_spirv_header(grammar: Grammar) -> HeaderUnit:
    known_kinds = frozenset(kind.kind for kind in grammar.operand_kinds)
    kinds = []
    for operand_kind in grammar.operand_kinds:
        decl = gen_operand_kind(operand_kind, known_kinds)
        if decl is not None:
            kinds.append(decl)
    return HeaderUnit(
        constants=FormatConstants(
            magic_number=grammar.magic_number,
            major_version=grammar.major_version,
            minor_version=grammar.minor_version,
            revision=grammar.revision,
        ),
        kinds=tuple(kinds),
        opcodes=gen_opcode_table(grammar.instructions),
    )


def gen_ext_inst_unit(name: str, grammar: ExtInstSetGrammar, doc: str) -> ExtInstUnit:
    return ExtInstUnit(opcodes=gen_ext_inst_opcodes(name, grammar, doc))


# ===--- Rust rendering ---=== #

_VALUE_ENUM_DERIVE = (
    "#[derive(Clone, Copy, Debug, PartialEq, Eq, PartialOrd, Ord, Hash)]"
)
_SERDE_ATTRIBUTES = (
    '#[cfg_attr(feature = "serialize", derive(serde::Serialize))]',
    '#[cfg_attr(feature = "deserialize", derive(serde::Deserialize))]',
)


def rust_str(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_logical_operand(operand: LogicalOperand) -> str:
    quantifier = _RUST_QUANTIFIERS[operand.quantifier]
    return (
        f"LogicalOperand {{ kind: OperandKind::{operand.kind}, "
        f"quantifier: OperandQuantifier::{quantifier} }}"
    )


def _render_slice(items: list[str]) -> str:
    return f"&[{', '.join(items)}]"


def _render_match_fn(
    signature: str,
    arms: list[tuple[list[str], str]],
    has_variants: bool,
    fallback: str | None,
) -> list[str]:
    """Render a `match self` method. arms pairs variant names with a body."""
    lines = [f"    {signature} {{"]
    if not has_variants:
        lines.append("        match self {}")
    elif not arms:
        lines.append(f"        {fallback}")
    else:
        lines.append("        match self {")
        for names, body in arms:
            pattern = " | ".join(f"Self::{name}" for name in names)
            lines.append(f"            {pattern} => {body},")
        if fallback is not None:
            lines.append(f"            _ => {fallback},")
        lines.append("        }")
    lines.append("    }")
    return lines


def render_required_helpers(decl: ValueEnumDecl) -> list[str]:
    has_variants = bool(decl.variants)
    capability_arms = [
        (list(names), _render_slice([f"Capability::{cap}" for cap in caps]))
        for caps, names in decl.capability_clauses
    ]
    extension_arms = [
        (list(names), _render_slice([rust_str(ext) for ext in exts]))
        for exts, names in decl.extension_clauses
    ]
    operand_arms = [
        ([name], _render_slice([render_logical_operand(op) for op in operands]))
        for name, operands in decl.operand_clauses
    ]
    operand_fallback = (
        "&[]" if len(decl.operand_clauses) < len(decl.variants) else None
    )

    lines = _render_match_fn(
        "pub fn required_capabilities(self) -> &'static [Capability]",
        capability_arms,
        has_variants,
        None,
    )
    lines.append("")
    lines.extend(
        _render_match_fn(
            "pub fn required_extensions(self) -> &'static [&'static str]",
            extension_arms,
            has_variants,
            None,
        )
    )
    lines.append("")
    lines.extend(
        _render_match_fn(
            "pub fn required_operands(self) -> &'static [LogicalOperand]",
            operand_arms,
            has_variants,
            operand_fallback,
        )
    )
    return lines


def render_from_primitive(decl: ValueEnumDecl) -> list[str]:
    lines = [
        f"impl num_traits::FromPrimitive for {decl.name} {{",
        "    #[allow(trivial_numeric_casts)]",
        "    fn from_i64(n: i64) -> Option<Self> {",
        "        Some(match n as u32 {",
    ]
    for variant in decl.variants:
        lines.append(f"            {variant.value} => Self::{variant.name},")
    lines.extend(
        [
            "            _ => return None,",
            "        })",
            "    }",
            "",
            "    fn from_u64(n: u64) -> Option<Self> {",
            "        Self::from_i64(n as i64)",
            "    }",
            "}",
        ]
    )
    return lines


def render_from_str(decl: ValueEnumDecl) -> list[str]:
    lines = [
        f"impl core::str::FromStr for {decl.name} {{",
        "    type Err = ();",
        "",
        "    fn from_str(s: &str) -> Result<Self, Self::Err> {",
        "        match s {",
    ]
    for key, symbol in decl.name_keys:
        lines.append(f"            {rust_str(key)} => Ok(Self::{symbol}),")
    lines.extend(
        [
            "            _ => Err(()),",
            "        }",
            "    }",
            "}",
        ]
    )
    return lines


def render_value_enum(decl: ValueEnumDecl) -> list[str]:
    lines = [f"/// {decl.doc}"]
    # repr(u32) is rejected on zero-variant enums.
    if decl.variants:
        lines.append("#[repr(u32)]")
    lines.append(_VALUE_ENUM_DERIVE)
    lines.extend(_SERDE_ATTRIBUTES)
    lines.append("#[allow(clippy::upper_case_acronyms)]")
    lines.append(f"pub enum {decl.name} {{")
    for variant in decl.variants:
        lines.append(f"    {variant.name} = {variant.value},")
    lines.append("}")

    impl_body = [
        f"    pub const {alias.name}: Self = Self::{alias.target};"
        for alias in decl.aliases
    ]
    if decl.operand_kind:
        if impl_body:
            impl_body.append("")
        impl_body.extend(render_required_helpers(decl))
    if impl_body:
        lines.append("")
        lines.append("#[allow(non_upper_case_globals)]")
        lines.append(f"impl {decl.name} {{")
        lines.extend(impl_body)
        lines.append("}")

    lines.append("")
    lines.extend(render_from_primitive(decl))
    if decl.operand_kind:
        lines.append("")
        lines.extend(render_from_str(decl))
    return lines


def render_bit_enum(decl: BitEnumDecl) -> list[str]:
    lines = [
        "bitflags! {",
        f"    /// {decl.doc}",
    ]
    lines.extend(f"    {attr}" for attr in _SERDE_ATTRIBUTES)
    lines.append(f"    pub struct {decl.name}: u32 {{")
    for flag in decl.flags:
        lines.append(f"        const {flag.name} = 0x{flag.value:08x};")
    lines.append("    }")
    lines.append("}")

    if decl.flag_operands:
        lines.append("")
        lines.append(f"impl {decl.name} {{")
        lines.append(
            "    pub fn operands_for(self, flag: Self) -> &'static [LogicalOperand] {"
        )
        for name, operands in decl.flag_operands:
            body = _render_slice([render_logical_operand(op) for op in operands])
            lines.append(f"        if flag == Self::{name} && self.contains(flag) {{")
            lines.append(f"            return {body};")
            lines.append("        }")
        lines.append("        &[]")
        lines.append("    }")
        lines.append("}")
    return lines


def render_decl(decl: ValueEnumDecl | BitEnumDecl) -> list[str]:
    if isinstance(decl, BitEnumDecl):
        return render_bit_enum(decl)
    return render_value_enum(decl)


def render_format_constants(constants: FormatConstants) -> list[str]:
    return [
        "pub type Word = u32;",
        f"pub const MAGIC_NUMBER: u32 = {constants.magic_literal};",
        f"pub const MAJOR_VERSION: u8 = {constants.major_version};",
        f"pub const MINOR_VERSION: u8 = {constants.minor_version};",
        f"pub const REVISION: u8 = {constants.revision};",
    ]


def render_header_unit(unit: HeaderUnit) -> list[str]:
    lines = render_format_constants(unit.constants)
    for decl in unit.kinds:
        lines.append("")
        lines.extend(render_decl(decl))
    lines.append("")
    lines.extend(render_value_enum(unit.opcodes))
    return lines


def render_ext_inst_unit(unit: ExtInstUnit) -> list[str]:
    return render_value_enum(unit.opcodes)


# ===--- Output writer ---=== #

MAIN_HEADER_FILENAME: str = "autogen_spirv.rs"


@dataclass(frozen=True)
class WriteConfig:
    """Shared generation metadata embedded in every file preamble.

    Attributes:
        spirv_version: "major.minor" of the core grammar, e.g. "1.6".
        revision: Core grammar revision number.
    """

    spirv_version: str
    revision: int


@dataclass(frozen=True)
class UseImport:
    """One Rust `use` line.

    Renders as:
        use <path>::<name>;            (one name)
        use <path>::{<n1>, <n2>};      (several names)
    """

    path: str
    names: tuple[str, ...]


@dataclass(frozen=True)
class UnitSpec:
    """Complete input for one generated .rs file.

    Attributes:
        filename: Output filename including .rs extension.
        source: Grammar file the unit was generated from, for the header.
        uses: `use` lines, in declaration order.
        content_lines: Generated Rust lines without header or uses.
    """

    filename: str
    source: str
    uses: tuple[UseImport, ...]
    content_lines: tuple[str, ...]


@dataclass(frozen=True)
class FileWriteResult:
    filename: str
    path: Path
    line_count: int
    byte_count: int


@dataclass(frozen=True)
class OutputWriteResult:
    """Result of writing every generated file of one run.

    files keeps write order: the main header first, then one file per
    extended instruction set in request order.
    """

    output_dir: Path
    files: tuple[FileWriteResult, ...]

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)


HEADER_USES: tuple[UseImport, ...] = (
    UseImport("bitflags", ("bitflags",)),
    UseImport("crate::grammar", ("LogicalOperand", "OperandKind", "OperandQuantifier")),
)

_HEADER_BORDER: str = "// x-------------------------------------------x //"


def format_file_header(config: WriteConfig, source: str) -> list[str]:
    """Return comment-block lines for a generated file header.

    Output format:
        // x-------------------------------------------x //
        // | SPIR-V 1.6 definitions for Rust
        // | Generated by spirv-autogen
        // | Source: spirv.core.grammar.json (revision 4)
        // | DO NOT MODIFY
        // x-------------------------------------------x //

    Raises:
        ValueError: If config.spirv_version or source is empty.
    """
    if not config.spirv_version:
        raise ValueError("spirv_version must not be empty")
    if not source:
        raise ValueError("source must not be empty")
    return [
        _HEADER_BORDER,
        f"// | SPIR-V {config.spirv_version} definitions for Rust",
        "// | Generated by spirv-autogen",
        f"// | Source: {source} (revision {config.revision})",
        "// | DO NOT MODIFY",
        _HEADER_BORDER,
    ]


def format_use_block(uses: tuple[UseImport, ...]) -> list[str]:
    lines = []
    for use in uses:
        if not use.names:
            raise ValueError(f"UseImport for '{use.path}' has empty names tuple")
        if len(use.names) == 1:
            lines.append(f"use {use.path}::{use.names[0]};")
        else:
            lines.append(f"use {use.path}::{{{', '.join(use.names)}}};")
    return lines


def assemble_unit_source(config: WriteConfig, spec: UnitSpec) -> str:
    """Assemble one complete .rs source string: header, uses, content.

    Sections are separated by one blank line; the result ends with a single
    trailing newline.

    Raises:
        ValueError: If spec.filename is empty or does not end with ".rs".
    """
    if not spec.filename or not spec.filename.endswith(".rs"):
        raise ValueError(
            f"spec.filename must be non-empty and end with '.rs', got {spec.filename!r}"
        )

    parts: list[str] = list(format_file_header(config, spec.source))
    if spec.uses:
        parts.append("")
        parts.extend(format_use_block(spec.uses))
    if spec.content_lines:
        parts.append("")
        parts.extend(spec.content_lines)
    return "\n".join(parts) + "\n"


def write_unit(output_dir: Path, config: WriteConfig, spec: UnitSpec) -> FileWriteResult:
    """Write one generated file, creating output_dir if absent.

    Raises:
        ValueError: Propagated from assemble_unit_source on invalid spec.
        OSError: Propagated directly if the filesystem write fails.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    content = assemble_unit_source(config, spec)
    file_path = output_dir / spec.filename
    file_path.write_text(content, encoding="utf-8")
    resolved = file_path.resolve()
    return FileWriteResult(
        filename=spec.filename,
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


def write_output(
    output_dir: Path, config: WriteConfig, specs: tuple[UnitSpec, ...]
) -> OutputWriteResult:
    files = tuple(write_unit(output_dir, config, spec) for spec in specs)
    return OutputWriteResult(output_dir=Path(output_dir), files=files)


# ===--- Pipeline ---=== #


def ext_inst_filename(name: str) -> str:
    return f"autogen_{to_snake_case(name)}.rs"


def build_write_config(grammar: Grammar) -> WriteConfig:
    return WriteConfig(
        spirv_version=f"{grammar.major_version}.{grammar.minor_version}",
        revision=grammar.revision,
    )


def build_unit_specs(
    header: HeaderUnit,
    grammar_path: Path,
    ext_units: tuple[tuple[ExtInstSetRequest, ExtInstUnit], ...] = (),
) -> tuple[UnitSpec, ...]:
    """Render every unit. Runs before any write so a run is all-or-nothing."""
    specs = [
        UnitSpec(
            filename=MAIN_HEADER_FILENAME,
            source=Path(grammar_path).name,
            uses=HEADER_USES,
            content_lines=tuple(render_header_unit(header)),
        )
    ]
    for request, unit in ext_units:
        specs.append(
            UnitSpec(
                filename=ext_inst_filename(request.name),
                source=request.path.name,
                uses=(),
                content_lines=tuple(render_ext_inst_unit(unit)),
            )
        )
    return tuple(specs)


def run_generate(config: GenerateConfig) -> OutputWriteResult:
    """Load, generate, render and write. Returns what was written.

    Raises:
        OSError: Grammar file not readable or filesystem write failure.
        json.JSONDecodeError: Grammar file is not JSON.
        GenerationError: Malformed grammar, symbol or operand reference.
    """
    print(f"Parsing: {config.grammar}")
    grammar = load_grammar(config.grammar)
    print(
        f"  Grammar: SPIR-V {grammar.major_version}.{grammar.minor_version} "
        f"revision {grammar.revision}, {len(grammar.operand_kinds)} operand kinds, "
        f"{len(grammar.instructions)} instructions"
    )

    header = gen_spirv_header(grammar)
    print(
        f"  Generated: {len(header.kinds)} operand kinds, "
        f"{len(header.opcodes.variants)} opcodes"
    )

    ext_units: list[tuple[ExtInstSetRequest, ExtInstUnit]] = []
    for request in config.ext_inst_sets:
        print(f"Parsing: {request.path}")
        ext_grammar = load_ext_inst_grammar(request.path)
        unit = gen_ext_inst_unit(request.name, ext_grammar, request.doc)
        print(f"  {request.name}: {len(unit.opcodes.variants)} opcodes")
        ext_units.append((request, unit))

    write_config = build_write_config(grammar)
    specs = build_unit_specs(header, config.grammar, tuple(ext_units))
    result = write_output(config.output_dir, write_config, specs)
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    summary = build_generation_summary(
        grammar, config.grammar, header, tuple(unit for _, unit in ext_units), result
    )
    print_generation_summary(summary)
    return result


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationCounts:
    """Declaration counts for one run.

    Attributes:
        value_enums: ValueEnum kinds generated.
        bit_enums: BitEnum kinds generated.
        skipped_kinds: Id, Literal and Composite kinds passed through.
        aliases: Alias constants across all value enums.
        opcodes: Main-table discriminants.
        opcode_aliases: Main-table alias constants.
        ext_inst_opcodes: Discriminants across all extended sets.
    """

    value_enums: int
    bit_enums: int
    skipped_kinds: int
    aliases: int
    opcodes: int
    opcode_aliases: int
    ext_inst_opcodes: int


@dataclass(frozen=True)
class GenerationSummary:
    source_label: str
    output_dir: str
    counts: GenerationCounts
    files: tuple[FileWriteResult, ...]


def build_generation_counts(
    grammar: Grammar,
    header: HeaderUnit,
    ext_units: tuple[ExtInstUnit, ...] = (),
) -> GenerationCounts:
    value_enums = [d for d in header.kinds if isinstance(d, ValueEnumDecl)]
    bit_enums = [d for d in header.kinds if isinstance(d, BitEnumDecl)]
    return GenerationCounts(
        value_enums=len(value_enums),
        bit_enums=len(bit_enums),
        skipped_kinds=len(grammar.operand_kinds) - len(header.kinds),
        aliases=sum(len(d.aliases) for d in value_enums),
        opcodes=len(header.opcodes.variants),
        opcode_aliases=len(header.opcodes.aliases),
        ext_inst_opcodes=sum(len(u.opcodes.variants) for u in ext_units),
    )


def build_generation_summary(
    grammar: Grammar,
    grammar_path: Path,
    header: HeaderUnit,
    ext_units: tuple[ExtInstUnit, ...],
    write_result: OutputWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        source_label=(
            f"{Path(grammar_path).name} "
            f"(SPIR-V {grammar.major_version}.{grammar.minor_version} "
            f"revision {grammar.revision})"
        ),
        output_dir=str(write_result.output_dir),
        counts=build_generation_counts(grammar, header, ext_units),
        files=write_result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary to the console report string.

    Alias annotations appear only when the alias count is non-zero. Line
    counts use thousands separators. Ends with exactly one newline.
    """
    counts = summary.counts
    lines: list[str] = [
        "SPIR-V definitions generated:",
        "",
        f"  Source:     {summary.source_label}",
        f"  Output:     {summary.output_dir}",
        "",
        "  Declarations:",
    ]

    def _row(label: str, total: int, aliases: int = 0) -> str:
        row = f"    {label:<19}{total:>6}"
        if aliases:
            row += f"  (+{aliases} aliases)"
        return row

    lines.append(_row("Value enums:", counts.value_enums, counts.aliases))
    lines.append(_row("Bit enums:", counts.bit_enums))
    lines.append(_row("Skipped kinds:", counts.skipped_kinds))
    lines.append(_row("Opcodes:", counts.opcodes, counts.opcode_aliases))
    lines.append(_row("Ext inst opcodes:", counts.ext_inst_opcodes))

    lines.append("")
    lines.append("  Files written:")
    for file_result in summary.files:
        lines.append(f"    {file_result.filename:<28} {file_result.line_count:>6,} lines")

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")
    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Discovery commands ---=== #


@dataclass(frozen=True)
class KindSummary:
    name: str
    category: str
    enumerant_count: int
    alias_count: int


@dataclass(frozen=True)
class EnumerantEntry:
    """One enumerant as listed by --info.

    alias_of names the earlier enumerant owning the same value in a
    ValueEnum kind, None for canonical enumerants and for BitEnum flags.
    """

    symbol: str
    value: int
    alias_of: str | None
    capabilities: tuple[str, ...]
    parameters: tuple[str, ...]


@dataclass(frozen=True)
class KindDetail:
    summary: KindSummary
    enumerants: tuple[EnumerantEntry, ...]


def _alias_targets(kind: OperandKind) -> list[str | None]:
    if kind.category != VALUE_ENUM:
        return [None] * len(kind.enumerants)
    first_seen: dict[int, str] = {}
    targets: list[str | None] = []
    for e in kind.enumerants:
        targets.append(first_seen.get(e.value))
        first_seen.setdefault(e.value, e.symbol)
    return targets


def summarize_kind(kind: OperandKind) -> KindSummary:
    targets = _alias_targets(kind)
    return KindSummary(
        name=kind.kind,
        category=kind.category,
        enumerant_count=len(kind.enumerants),
        alias_count=sum(1 for t in targets if t is not None),
    )


def gather_kind_summaries(grammar: Grammar) -> list[KindSummary]:
    return [summarize_kind(kind) for kind in grammar.operand_kinds]


def filter_kinds_by_text(
    summaries: list[KindSummary], filter_text: str
) -> list[KindSummary]:
    needle = filter_text.lower()
    return [s for s in summaries if needle in s.name.lower()]


def gather_kind_detail(grammar: Grammar, kind_name: str) -> KindDetail | None:
    for kind in grammar.operand_kinds:
        if kind.kind != kind_name:
            continue
        entries = tuple(
            EnumerantEntry(
                symbol=e.symbol,
                value=e.value,
                alias_of=target,
                capabilities=e.capabilities,
                parameters=tuple(p.kind + p.quantifier.value for p in e.parameters),
            )
            for e, target in zip(kind.enumerants, _alias_targets(kind))
        )
        return KindDetail(summary=summarize_kind(kind), enumerants=entries)
    return None


def format_kinds_table(summaries: list[KindSummary], version_label: str) -> str:
    """Return the --list-kinds output.

        {N} operand kinds in SPIR-V {version_label}:

          ImageOperands      BitEnum      17 enumerants
          Dim                ValueEnum     8 enumerants   2 aliases
          IdRef              Id
    """
    lines = [f"{len(summaries)} operand kinds in SPIR-V {version_label}:", ""]
    name_width = max((len(s.name) for s in summaries), default=0)
    category_width = max((len(s.category) for s in summaries), default=0)
    for s in summaries:
        row = f"  {s.name.ljust(name_width)}  {s.category.ljust(category_width)}"
        if s.category in (BIT_ENUM, VALUE_ENUM):
            row += f"  {s.enumerant_count:>4} enumerants"
            if s.alias_count:
                row += f"  {s.alias_count} aliases"
        lines.append(row.rstrip())
    lines.append("")
    return "\n".join(lines)


def format_kind_detail(detail: KindDetail) -> str:
    """Return the --info output for one operand kind.

        Dim (ValueEnum, 8 enumerants)

          Dim1D              0  capabilities: Sampled1D
          Buffer             5  capabilities: SampledBuffer
          TileImageDataEXT   4096
    """
    s = detail.summary
    lines = [f"{s.name} ({s.category}, {s.enumerant_count} enumerants)", ""]
    symbol_width = max((len(e.symbol) for e in detail.enumerants), default=0)
    for e in detail.enumerants:
        value = f"0x{e.value:04x}" if s.category == BIT_ENUM else str(e.value)
        row = f"  {e.symbol.ljust(symbol_width)}  {value:>10}"
        if e.alias_of is not None:
            row += f"  alias of {e.alias_of}"
        if e.capabilities:
            row += f"  capabilities: {', '.join(e.capabilities)}"
        if e.parameters:
            row += f"  parameters: {', '.join(e.parameters)}"
        lines.append(row)
    lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig) -> None:
    """Execute the discovery command in config and print the result.

    Raises:
        SystemExit(1): When config.command == "info" and the kind is not
            in the grammar.
    """
    grammar = load_grammar(config.grammar)
    version_label = (
        f"{grammar.major_version}.{grammar.minor_version} revision {grammar.revision}"
    )

    if config.command == "list-kinds":
        summaries = gather_kind_summaries(grammar)
        if config.filter_text is not None:
            summaries = filter_kinds_by_text(summaries, config.filter_text)
        print(format_kinds_table(summaries, version_label), end="")

    elif config.command == "info":
        assert config.info_kind is not None
        detail = gather_kind_detail(grammar, config.info_kind)
        if detail is None:
            print(
                f"Error: operand kind '{config.info_kind}' not found in SPIR-V {version_label}",
                file=sys.stderr,
            )
            raise SystemExit(1)
        print(format_kind_detail(detail), end="")


# ===--- Main generation ---=== #


def main():
    try:
        config = build_config()
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        if isinstance(config, DiscoveryConfig):
            run_discovery(config)
        else:
            run_generate(config)
    except GenerationError as err:
        print(f"Generation error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err
    except (OSError, json.JSONDecodeError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
