"""Module indexing, alias resolution and reachability classification."""

from orphanprune.analysis.aliases import AliasResolver, AliasRule, AliasTable, load_alias_table
from orphanprune.analysis.classifier import ReachabilityClassifier
from orphanprune.analysis.index import EdgeKind, ImportEdge, ModuleIndex
from orphanprune.analysis.parser import FailedModule, ParsedModule, parse_file, parse_module
from orphanprune.analysis.pipeline import run_analysis
from orphanprune.analysis.references import ReferenceCorpus, ReferenceScanner

__all__ = [
    "AliasResolver",
    "AliasRule",
    "AliasTable",
    "EdgeKind",
    "FailedModule",
    "ImportEdge",
    "ModuleIndex",
    "ParsedModule",
    "ReachabilityClassifier",
    "ReferenceCorpus",
    "ReferenceScanner",
    "load_alias_table",
    "parse_file",
    "parse_module",
    "run_analysis",
]
