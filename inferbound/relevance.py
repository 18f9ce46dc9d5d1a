"""
The unification approach to bound inference, part three: what matters.

Plenty of constraints turn up along the way that have nothing to do with
the implementation under construction: bounds on a helper's parameters that
got tied to some concrete type, for instance. Those are already satisfied
(or not) somewhere else. The only constraints worth declaring are the ones
about the implementation's own generic parameters, and the relevance filter
keeps exactly those, rewritten in terms of the most concrete types known.
"""
from typing import Iterable, Optional
from .calculus import (
	Type, GenericParamRef, Path, AngleBracketed, Parenthesized, Bound, TraitBound, LifetimeBound,
	GenericConstraint, PredicateType, PredicateLifetime, ConstraintSet, ModelVisitor,
)
from .diagnostics import UnsupportedConstruct
from .resolution import Resolver
from .unification import SetRef


class RelevanceFilter:
	def __init__(self, resolver:Resolver, relevant_sets:Iterable[SetRef]):
		self._resolver = resolver
		self._relevant = frozenset(relevant_sets)
		self._is_relevant = _IsRelevant(self)

	def is_relevant_set(self, set_ref:Optional[SetRef]) -> bool:
		return set_ref in self._relevant

	def is_relevant_param(self, param:GenericParamRef) -> bool:
		return self.is_relevant_set(self._resolver.set_of(param))

	def is_relevant_type(self, ty:Type) -> bool:
		""" Only a relevant parameter, or a reference (to a reference...) to one, will do. """
		return ty.visit(self._is_relevant)

	def is_relevant_path(self, path:Path) -> bool:
		arguments = path.last.arguments
		if isinstance(arguments, Parenthesized):
			raise UnsupportedConstruct("Parenthesized generic arguments", path)
		if isinstance(arguments, AngleBracketed):
			return all(self.is_relevant_type(a) for a in arguments.args if isinstance(a, Type))
		return True

	def is_relevant_bound(self, bound:Bound) -> bool:
		if isinstance(bound, TraitBound): return self.is_relevant_path(bound.path)
		assert isinstance(bound, LifetimeBound), bound
		return True

	def keep(self, constraint:GenericConstraint) -> Optional[GenericConstraint]:
		"""
		The most concrete, relevant form of the constraint, or None if
		the constraint does not concern the implementation's parameters.
		"""
		if isinstance(constraint, PredicateLifetime):
			return constraint
		assert isinstance(constraint, PredicateType), constraint
		bounded_type = self._resolver.settle(constraint.bounded_type)
		if not self.is_relevant_type(bounded_type): return None
		bounds = []
		for bound in constraint.bounds:
			bound = self._resolver.settle_bound(bound)
			if not self.is_relevant_bound(bound): return None
			bounds.append(bound)
		return PredicateType(bounded_type, bounds, constraint.lifetimes)

	def filter(self, constraints:Iterable[GenericConstraint]) -> ConstraintSet:
		result = ConstraintSet()
		for constraint in constraints:
			kept = self.keep(constraint)
			if kept is not None: result.insert(kept)
		return result


class _IsRelevant(ModelVisitor):
	def __init__(self, outer:RelevanceFilter):
		self._outer = outer
	def on_param(self, t): return self._outer.is_relevant_param(t)
	def on_reference(self, t): return t.inner.visit(self)
	def on_mutable_reference(self, t): return t.inner.visit(self)
	def on_infer(self, t): return False
	def on_tuple(self, t): return False
	def on_primitive_string(self, t): return False
	def on_dereference(self, t): return False
	def on_trait_object(self, t): return False
	def on_data_structure(self, t): return False
	def on_path(self, t): return False
