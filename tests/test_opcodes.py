import pytest

import spirv_autogen as sa


def test_main_table_strips_op_marker() -> None:
    decl = sa.gen_opcode_table((sa.Instruction("OpFoo", 7),))

    assert decl.name == "Op"
    assert decl.variants == (sa.EnumVariant("Foo", 7),)
    assert not decl.operand_kind


def test_main_table_aliases_share_discriminant() -> None:
    decl = sa.gen_opcode_table(
        (
            sa.Instruction("OpDecorateId", 332),
            sa.Instruction("OpDecorateIdGOOGLE", 332),
        )
    )

    assert decl.variants == (sa.EnumVariant("DecorateId", 332),)
    assert decl.aliases == (sa.AliasConst("DecorateIdGOOGLE", "DecorateId"),)
    assert decl.from_number(332) == "DecorateId"
    assert decl.from_number(decl.value_of("DecorateIdGOOGLE")) == "DecorateId"


def test_main_table_opname_without_marker_is_fatal() -> None:
    with pytest.raises(sa.MalformedSymbolError):
        sa.gen_opcode_table((sa.Instruction("Nop", 0),))


def test_ext_inst_table_keeps_names(ext_inst_data: dict[str, object]) -> None:
    grammar = sa.parse_ext_inst_grammar(ext_inst_data)

    decl = sa.gen_ext_inst_opcodes("GLOp", grammar, "glsl.std.450 extended instruction opcodes")

    assert decl.name == "GLOp"
    assert [v.name for v in decl.variants] == ["Round", "RoundEven", "Trunc"]
    assert decl.doc == "glsl.std.450 extended instruction opcodes"


def test_ext_inst_table_named_bar_is_unchanged() -> None:
    grammar = sa.ExtInstSetGrammar(version=1, revision=0, instructions=(sa.Instruction("Bar", 1),))

    decl = sa.gen_ext_inst_opcodes("CLOp", grammar, "doc")

    assert decl.from_number(1) == "Bar"


def test_tables_have_independent_discriminator_spaces() -> None:
    main = sa.gen_opcode_table((sa.Instruction("OpA", 1),))
    first = sa.gen_ext_inst_opcodes(
        "XOp", sa.ExtInstSetGrammar(1, 0, (sa.Instruction("A", 1),)), "doc"
    )
    second = sa.gen_ext_inst_opcodes(
        "YOp",
        sa.ExtInstSetGrammar(1, 0, (sa.Instruction("B", 1), sa.Instruction("C", 1))),
        "doc",
    )

    assert main.aliases == ()
    assert first.aliases == ()
    assert second.variants == (sa.EnumVariant("B", 1),)
    assert second.aliases == (sa.AliasConst("C", "B"),)


def test_render_opcode_enum_has_no_string_conversion() -> None:
    decl = sa.gen_opcode_table(
        (sa.Instruction("OpNop", 0), sa.Instruction("OpNopAlias", 0))
    )

    lines = sa.render_value_enum(decl)

    assert "pub enum Op {" in lines
    assert "    pub const NopAlias: Self = Self::Nop;" in lines
    assert "impl num_traits::FromPrimitive for Op {" in lines
    assert not any("FromStr" in line for line in lines)
    assert not any("required_capabilities" in line for line in lines)
