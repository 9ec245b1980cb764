from .directives import REMOVE, DirectiveAccessor, normalize
from .mutation import MutationStream, apply_directive, inject
from .rewriter import Element, Rewriter
from .selector import SelectorError, parse_selector
from .stages import Append, Clone, Pipeline, Prepend, Replace, build_pipeline
from .template import Template, TemplateOpts, concat
from .tokenizer import Tokenizer, TokenizerOpts

__version__ = "1.0.0"

__all__ = [
    "REMOVE",
    "Append",
    "Clone",
    "DirectiveAccessor",
    "Element",
    "MutationStream",
    "Pipeline",
    "Prepend",
    "Replace",
    "Rewriter",
    "SelectorError",
    "Template",
    "TemplateOpts",
    "Tokenizer",
    "TokenizerOpts",
    "apply_directive",
    "build_pipeline",
    "concat",
    "inject",
    "normalize",
    "parse_selector",
]
