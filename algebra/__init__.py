"""Algebra calculator core: parse, simplify, expand, factor, solve and graph."""

from algebra.operations import OPERATIONS, calculate, respond

__all__ = ["OPERATIONS", "calculate", "respond"]
