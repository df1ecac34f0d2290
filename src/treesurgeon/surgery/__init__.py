"""
Surgery language: templates, operations, compiler, executor and rules.
"""

from treesurgeon.surgery.auxtree import (
    TemplateNode,
    AuxiliaryTree,
    Instance,
    parse_template_label,
)
from treesurgeon.surgery.ops import (
    OperationKind,
    PositionKind,
    Fetch,
    Hold,
    Position,
    Operation,
    SurgeryScript,
)
from treesurgeon.surgery.compiler import compile_script
from treesurgeon.surgery.executor import (
    SurgeryContext,
    SurgeryResult,
    SurgeryExecutor,
    execute,
    apply,
)
from treesurgeon.surgery.rules import Rule, compile_rule, parse_rules, load_rules

__all__ = [
    # auxtree
    "TemplateNode",
    "AuxiliaryTree",
    "Instance",
    "parse_template_label",
    # ops
    "OperationKind",
    "PositionKind",
    "Fetch",
    "Hold",
    "Position",
    "Operation",
    "SurgeryScript",
    # compiler
    "compile_script",
    # executor
    "SurgeryContext",
    "SurgeryResult",
    "SurgeryExecutor",
    "execute",
    "apply",
    # rules
    "Rule",
    "compile_rule",
    "parse_rules",
    "load_rules",
]
