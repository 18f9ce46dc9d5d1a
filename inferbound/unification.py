"""
The unification approach to bound inference, part one: equality sets.

Every time a value of one type flows into a position that expects another,
the two types must be the same type. That is the only evidence this engine
ever considers. The EqualitySets object keeps track of which types have been
found equal, one group (set) at a time. Sets live in an arena and are known
by their position in it; a dictionary maps each type to the set it belongs to.

Trait objects are the odd case: passing a `P` where a `dyn Iterator` is
expected says nothing about what `P` equals, but it does say that `P` must
implement `Iterator`. So that turns into a constraint directly.
"""
from typing import Any, Iterable, Optional
from boozetools.support.foundation import Visitor
from .calculus import (
	Type, Tuple, Reference, MutableReference, TraitObject, TraitBound, PathType,
	Path, AngleBracketed, Parenthesized, LifetimeRef, Bound,
	PredicateType, ConstraintSet,
)
from .diagnostics import ArityMismatch, UnsupportedConstruct, Report

SetRef = int


class EqualitySets:
	"""
	Groups of types known to be equal.

	When two types already belong to different sets, the smaller set
	is folded into the larger, so the sets stay disjoint. The `legacy_merge`
	flag instead just adds the second type to the first type's set,
	which is how the thing used to behave. Earlier members of the
	second set then never hear about the merge.
	"""

	def __init__(self, report:Optional[Report]=None, legacy_merge:bool=False):
		self._report = report or Report()
		self._legacy_merge = legacy_merge
		self._set_of: dict[Type, SetRef] = {}
		self._sets: list[dict[Type, None]] = []  # Ordered, so resolution is repeatable.
		self._origin: dict[Type, tuple[int, str, Any]] = {}
		self._where: Optional[tuple[str, Any]] = None
		self._inner = _InnerStructure(self)

	def __contains__(self, ty:Type): return ty in self._set_of
	def __len__(self): return sum(1 for s in self._sets if s)

	def set_of(self, ty:Type) -> Optional[SetRef]:
		return self._set_of.get(ty)

	def members(self, set_ref:SetRef) -> tuple[Type, ...]:
		return tuple(self._sets[set_ref])

	def set_refs(self) -> Iterable[SetRef]:
		return (i for i, s in enumerate(self._sets) if s)

	def new_set(self, *types:Type) -> SetRef:
		set_ref = len(self._sets)
		self._sets.append({})
		for ty in types: self._add(ty, set_ref)
		return set_ref

	def ensure_set(self, ty:Type) -> SetRef:
		set_ref = self._set_of.get(ty)
		if set_ref is None: set_ref = self.new_set(ty)
		return set_ref

	def _add(self, ty:Type, set_ref:SetRef):
		self._sets[set_ref][ty] = None
		self._set_of[ty] = set_ref
		if self._where is not None and ty not in self._origin:
			self._origin[ty] = (len(self._origin),)+self._where

	def introduced_at(self, function:str, site:Any):
		""" Types that first turn up from here on get blamed on this call. """
		self._where = (function, site)

	def forget_site(self):
		self._where = None

	def origin_of(self, ty:Any) -> Optional[tuple[int, str, Any]]:
		""" (serial, function, site) of the call that first brought this type in, if known. """
		return self._origin.get(ty)

	def insert_as_equal_to(self, ty_a:Type, ty_b:Type, constraints:ConstraintSet):
		""" A value of one type went where the other type was expected. """
		a_is_object, b_is_object = isinstance(ty_a, TraitObject), isinstance(ty_b, TraitObject)
		if a_is_object and b_is_object:
			if len(ty_a.bounds) != len(ty_b.bounds):
				raise ArityMismatch("Trait objects have different numbers of bounds", ty_a, ty_b)
			self._inner.visit(ty_a, ty_b, constraints)
		elif a_is_object:
			self._constrain(ty_b, ty_a.bounds, constraints)
		elif b_is_object:
			self._constrain(ty_a, ty_b.bounds, constraints)
		elif _mixed_references(ty_a, ty_b):
			# A mutable reference may stand in for a shared one,
			# so at least the pointees must agree.
			self.insert_as_equal_to(ty_a.inner, ty_b.inner, constraints)
		else:
			self._inner.visit(ty_a, ty_b, constraints)
			self._merge(ty_a, ty_b)

	def _constrain(self, ty:Type, bounds:tuple[Bound, ...], constraints:ConstraintSet):
		constraint = PredicateType(ty, bounds)
		if constraints.insert(constraint):
			self._report.info("Constraint from trait object:", constraint)

	def _merge(self, ty_a:Type, ty_b:Type):
		ref_a, ref_b = self._set_of.get(ty_a), self._set_of.get(ty_b)
		if ref_a is None and ref_b is None:
			self.new_set(ty_a, ty_b)
		elif ref_b is None:
			self._add(ty_b, ref_a)
		elif ref_a is None:
			self._add(ty_a, ref_b)
		elif ref_a != ref_b:
			if self._legacy_merge:
				self._add(ty_b, ref_a)
			else:
				self._union(ref_a, ref_b)

	def _union(self, ref_a:SetRef, ref_b:SetRef):
		if len(self._sets[ref_a]) < len(self._sets[ref_b]):
			ref_a, ref_b = ref_b, ref_a
		self._report.info("Merging equality sets", ref_b, "into", ref_a)
		moving = self._sets[ref_b]
		self._sets[ref_b] = {}
		for ty in moving: self._add(ty, ref_a)

	def path_arguments_as_equal(self, path_a:Path, path_b:Path, constraints:ConstraintSet):
		"""
		Unify the generic arguments of the last segments, pairwise.
		If the counts differ, the paths may well be aliases of one another,
		so that is not an error; it just teaches nothing.
		"""
		args_a, args_b = path_a.last.arguments, path_b.last.arguments
		if isinstance(args_a, Parenthesized) or isinstance(args_b, Parenthesized):
			raise UnsupportedConstruct("Parenthesized generic arguments", path_a, path_b)
		if isinstance(args_a, AngleBracketed) and isinstance(args_b, AngleBracketed) and len(args_a) == len(args_b):
			for a, b in zip(args_a.args, args_b.args):
				if isinstance(a, Type) and isinstance(b, Type):
					self.insert_as_equal_to(a, b, constraints)
				elif isinstance(a, LifetimeRef) and isinstance(b, LifetimeRef):
					pass  # Lifetimes are not unified.
				else:
					raise UnsupportedConstruct("Type argument lined up against a lifetime", a, b)


def _mixed_references(ty_a:Type, ty_b:Type) -> bool:
	return (
		isinstance(ty_a, Reference) and isinstance(ty_b, MutableReference)
		or isinstance(ty_a, MutableReference) and isinstance(ty_b, Reference)
	)


class _InnerStructure(Visitor):
	"""
	Propagate equality into the parts of two types, where their shapes match.
	Where the shapes do not match, there is nothing to learn.
	"""

	def __init__(self, sets:EqualitySets):
		self._sets = sets

	def visit_Tuple(self, this:Tuple, that:Type, constraints):
		if isinstance(that, Tuple):
			if len(this.elements) != len(that.elements):
				raise ArityMismatch("Tuples have different numbers of elements", this, that)
			for a, b in zip(this.elements, that.elements):
				self._sets.insert_as_equal_to(a, b, constraints)

	def visit_Reference(self, this:Reference, that:Type, constraints):
		if isinstance(that, Reference):
			self._sets.insert_as_equal_to(this.inner, that.inner, constraints)

	def visit_MutableReference(self, this:MutableReference, that:Type, constraints):
		if isinstance(that, MutableReference):
			self._sets.insert_as_equal_to(this.inner, that.inner, constraints)

	def visit_PathType(self, this:PathType, that:Type, constraints):
		if isinstance(that, PathType):
			self._sets.path_arguments_as_equal(this.path, that.path, constraints)

	def visit_TraitObject(self, this:TraitObject, that:Type, constraints):
		if isinstance(that, TraitObject):
			for a, b in zip(this.bounds, that.bounds):
				# Lifetime bounds teach nothing.
				if isinstance(a, TraitBound) and isinstance(b, TraitBound):
					self._sets.path_arguments_as_equal(a.path, b.path, constraints)

	@staticmethod
	def visit_Infer(this, that, constraints): pass

	@staticmethod
	def visit_PrimitiveString(this, that, constraints): pass

	@staticmethod
	def visit_Dereference(this, that, constraints): pass

	@staticmethod
	def visit_DataStructure(this, that, constraints): pass

	@staticmethod
	def visit_GenericParamRef(this, that, constraints): pass
