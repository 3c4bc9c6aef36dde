import pytest

import spirv_autogen as sa


@pytest.fixture
def image_operands(make_kind, make_enumerant) -> sa.BitEnumDecl:
    kind = make_kind(
        "ImageOperands",
        "BitEnum",
        [
            make_enumerant("None", 0x0),
            make_enumerant("Bias", 0x1, parameters=(sa.Parameter("IdRef"),)),
            make_enumerant("Lod", 0x2, parameters=(sa.Parameter("IdRef"),)),
            make_enumerant(
                "Grad", 0x4, parameters=(sa.Parameter("IdRef"), sa.Parameter("IdRef"))
            ),
            make_enumerant("Nontemporal", 0x4000),
        ],
    )
    return sa.gen_bit_enum_operand_kind(kind, frozenset({"ImageOperands", "IdRef"}))


def test_one_flag_per_enumerant_at_verbatim_value(image_operands: sa.BitEnumDecl) -> None:
    assert image_operands.flags == (
        sa.BitFlag("NONE", 0x0),
        sa.BitFlag("BIAS", 0x1),
        sa.BitFlag("LOD", 0x2),
        sa.BitFlag("GRAD", 0x4),
        sa.BitFlag("NONTEMPORAL", 0x4000),
    )


def test_only_flags_with_parameters_get_operands(image_operands: sa.BitEnumDecl) -> None:
    assert [name for name, _ in image_operands.flag_operands] == ["BIAS", "LOD", "GRAD"]


def test_operands_for_exact_flag_value(image_operands: sa.BitEnumDecl) -> None:
    operands = image_operands.operands_for(0x4, "GRAD")

    assert operands == (
        sa.LogicalOperand("IdRef", sa.Quantifier.ONE),
        sa.LogicalOperand("IdRef", sa.Quantifier.ONE),
    )


def test_operands_for_uses_subset_not_equality(image_operands: sa.BitEnumDecl) -> None:
    combined = 0x1 | 0x4 | 0x4000

    assert image_operands.operands_for(combined, "GRAD") == image_operands.operands_for(
        0x4, "GRAD"
    )
    assert image_operands.operands_for(combined, "BIAS") == (
        sa.LogicalOperand("IdRef", sa.Quantifier.ONE),
    )


def test_operands_for_flag_not_set_is_none(image_operands: sa.BitEnumDecl) -> None:
    assert image_operands.operands_for(0x1, "LOD") is None


def test_operands_for_flag_without_parameters_is_none(
    image_operands: sa.BitEnumDecl,
) -> None:
    assert image_operands.operands_for(0x4000, "NONTEMPORAL") is None
    assert image_operands.operands_for(0x0, "NONE") is None


def test_zero_flag_with_parameters_participates(make_kind, make_enumerant) -> None:
    kind = make_kind(
        "Odd", "BitEnum", [make_enumerant("None", 0, parameters=(sa.Parameter("IdRef"),))]
    )

    decl = sa.gen_bit_enum_operand_kind(kind)

    assert decl.operands_for(0x10, "NONE") == (
        sa.LogicalOperand("IdRef", sa.Quantifier.ONE),
    )


def test_multi_bit_and_duplicate_values_are_kept_verbatim(make_kind, make_enumerant) -> None:
    kind = make_kind(
        "MemoryAccess",
        "BitEnum",
        [
            make_enumerant("MakePointerAvailable", 0x8),
            make_enumerant("MakePointerAvailableKHR", 0x8),
            make_enumerant("Mask", 0x3),
        ],
    )

    decl = sa.gen_bit_enum_operand_kind(kind)

    assert [(f.name, f.value) for f in decl.flags] == [
        ("MAKE_POINTER_AVAILABLE", 0x8),
        ("MAKE_POINTER_AVAILABLE_KHR", 0x8),
        ("MASK", 0x3),
    ]


def test_nan_flag_renders_as_single_word(make_kind, make_enumerant) -> None:
    kind = make_kind("FPFastMathMode", "BitEnum", [make_enumerant("NotNaN", 0x1)])

    decl = sa.gen_bit_enum_operand_kind(kind)

    assert decl.flags[0].name == "NOT_NAN"


def test_render_bit_enum(image_operands: sa.BitEnumDecl) -> None:
    lines = sa.render_bit_enum(image_operands)

    assert lines[0] == "bitflags! {"
    assert lines[1].startswith("    /// SPIR-V operand kind: [ImageOperands](")
    assert "    pub struct ImageOperands: u32 {" in lines
    assert "        const BIAS = 0x00000001;" in lines
    assert "        if flag == Self::GRAD && self.contains(flag) {" in lines
    assert lines[-3:] == ["        &[]", "    }", "}"]


def test_render_bit_enum_without_parameters_has_no_lookup(make_kind, make_enumerant) -> None:
    kind = make_kind("FunctionControl", "BitEnum", [make_enumerant("Inline", 0x1)])

    lines = sa.render_bit_enum(sa.gen_bit_enum_operand_kind(kind))

    assert lines[-1] == "}"
    assert not any("operands_for" in line for line in lines)
