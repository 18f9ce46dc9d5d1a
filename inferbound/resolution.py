"""
The unification approach to bound inference, part two: picking a winner.

Once all the evidence is in, each equality set gets one representative:
the most concrete type among its members. Named things beat placeholders,
strings beat everything, fewer generic arguments beat more (on the theory
that the shorter one is an alias of the longer), and between two generic
parameters the older one wins so the answer does not depend on the order
things were found in.

Representatives are memoized per set. The memo entry goes in as a
placeholder before the fold begins, so a set that (indirectly) mentions
itself sees its own members as they are, rather than going round forever.
"""
from typing import Iterable, Optional
from boozetools.support.foundation import Visitor
from .calculus import (
	Type, Infer, Tuple, PrimitiveString, Reference, MutableReference, TraitObject,
	PathType, Path, PathSegment, AngleBracketed, Parenthesized, GenericParamRef,
	LifetimeRef, TraitBound, Bound, GenericArgument, ModelVisitor, STR,
)
from .diagnostics import ArityMismatch, InternalInconsistency, UnsupportedConstruct
from .unification import EqualitySets, SetRef


class Resolver(Visitor):
	"""
	Computes most-concrete types over one pass's equality sets.
	The visit_* methods handle the structural pairings; `most_concrete_of_pair`
	deals with the symmetric cases before dispatching on the first operand.
	"""

	def __init__(self, sets:EqualitySets):
		self._sets = sets
		self._memo: dict[SetRef, Optional[Type]] = {}
		self._settling: set[SetRef] = set()

	def resolve(self, set_ref:SetRef) -> Optional[Type]:
		""" The set's representative, or None if it is still being worked out. """
		if set_ref in self._memo: return self._memo[set_ref]
		self._memo[set_ref] = None
		members = iter(self._sets.members(set_ref))
		result = next(members)
		for ty in members:
			result = self.most_concrete_of_pair(result, ty)
		self._memo[set_ref] = result
		return result

	def set_of(self, ty:Type) -> Optional[SetRef]:
		return self._sets.set_of(ty)

	def concrete(self, ty:Type) -> Type:
		set_ref = self._sets.set_of(ty)
		if set_ref is None: return ty
		it = self.resolve(set_ref)
		return ty if it is None else it

	def most_concrete_of_pair(self, this:Type, that:Type) -> Type:
		if this == that: return self.concrete(this)
		if isinstance(this, Infer): return self.concrete(that)
		if isinstance(that, Infer): return self.concrete(this)
		if isinstance(this, PrimitiveString) or isinstance(that, PrimitiveString): return STR
		if isinstance(that, PathType) and not isinstance(this, PathType): return self.concrete(that)
		return self.visit(this, that)

	def visit_PathType(self, this:PathType, that:Type):
		if isinstance(that, PathType): return self._merge_paths(this, that)
		return self.concrete(this)

	def _merge_paths(self, this:PathType, that:PathType) -> Type:
		args_1, args_2 = this.path.last.arguments, that.path.last.arguments
		# The one with no arguments is probably an alias for the other.
		if args_1.is_empty(): return this
		if args_2.is_empty(): return that
		if isinstance(args_1, Parenthesized) or isinstance(args_2, Parenthesized):
			raise UnsupportedConstruct("Parenthesized generic arguments", this, that)
		if len(args_1) < len(args_2): return self.concrete(this)
		if len(args_1) > len(args_2): return self.concrete(that)
		merged = AngleBracketed(self._merge_argument(a, b) for a, b in zip(args_1.args, args_2.args))
		path_1, path_2 = this.path, that.path
		if path_1.is_global or len(path_1.segments) < len(path_2.segments):
			return PathType(path_1.with_last_arguments(merged))
		return PathType(path_2.with_last_arguments(merged))

	def _merge_argument(self, a:GenericArgument, b:GenericArgument) -> GenericArgument:
		if isinstance(a, Type) and isinstance(b, Type):
			return self.most_concrete_of_pair(a, b)
		if isinstance(a, LifetimeRef) and isinstance(b, LifetimeRef):
			return a  # Lifetimes go unchecked.
		raise UnsupportedConstruct("Type argument lined up against a lifetime", a, b)

	def visit_Tuple(self, this:Tuple, that:Type):
		if isinstance(that, Tuple):
			if len(this.elements) != len(that.elements):
				raise ArityMismatch("Tuples have different numbers of elements", this, that)
			return Tuple(self.most_concrete_of_pair(a, b) for a, b in zip(this.elements, that.elements))
		return self._against_object(this, that)

	# The lifetime does not survive. That is a known loss.
	def visit_Reference(self, this:Reference, that:Type):
		if isinstance(that, Reference):
			return Reference(self.most_concrete_of_pair(this.inner, that.inner))
		return self._against_object(this, that)

	def visit_MutableReference(self, this:MutableReference, that:Type):
		if isinstance(that, MutableReference):
			return MutableReference(self.most_concrete_of_pair(this.inner, that.inner))
		return self._against_object(this, that)

	def visit_TraitObject(self, this:TraitObject, that:Type):
		return self.concrete(that)

	def visit_GenericParamRef(self, this:GenericParamRef, that:Type):
		if isinstance(that, GenericParamRef):
			return min(this, that)
		return self._against_object(this, that)

	def visit_Dereference(self, this, that): return self._against_object(this, that)
	def visit_DataStructure(self, this, that): return self._against_object(this, that)

	def _against_object(self, this:Type, that:Type) -> Type:
		if isinstance(that, TraitObject): return self.concrete(this)
		raise InternalInconsistency("No most-concrete type between incompatible types", this, that)

	###################
	#  Deep rewriting, for output.

	def settle(self, ty:Type) -> Type:
		""" The most concrete form of a type, all the way down. """
		set_ref = self._sets.set_of(ty)
		if set_ref is None:
			return ty.visit(_Settle(self))
		if set_ref in self._settling:
			return ty
		self._settling.add(set_ref)
		try:
			return self.concrete(ty).visit(_Settle(self))
		finally:
			self._settling.discard(set_ref)

	def settle_path(self, path:Path) -> Path:
		return Path((self._settle_segment(s) for s in path.segments), path.is_global)

	def _settle_segment(self, segment:PathSegment) -> PathSegment:
		arguments = segment.arguments
		if isinstance(arguments, AngleBracketed):
			arguments = AngleBracketed(self.settle(a) if isinstance(a, Type) else a for a in arguments.args)
		return PathSegment(segment.name, arguments)

	def settle_bound(self, bound:Bound) -> Bound:
		if isinstance(bound, TraitBound):
			return TraitBound(self.settle_path(bound.path), bound.lifetimes)
		return bound

	###################
	#  Which sets matter?

	def param_closure(self, params:Iterable[GenericParamRef]) -> set[SetRef]:
		"""
		The equality sets of every generic parameter reachable from the given ones:
		each parameter's set gets resolved, and the parameters nested in the
		result (through paths, tuples and references) count, along with
		whatever their own sets resolve to, and so on until nothing new turns up.
		"""
		relevant = set()
		checked = set()
		agenda = [self._sets.ensure_set(p) for p in params]
		while agenda:
			set_ref = agenda.pop()
			if set_ref in checked: continue
			checked.add(set_ref)
			representative = self.resolve(set_ref)
			nested = {}
			representative.visit(_NestedParams(nested))
			for param in nested:
				inner_ref = self._sets.ensure_set(param)
				relevant.add(inner_ref)
				agenda.append(inner_ref)
		return relevant


class _Settle(ModelVisitor):
	def __init__(self, resolver:Resolver):
		self._resolver = resolver
	def on_infer(self, t): return t
	def on_tuple(self, t): return Tuple(self._resolver.settle(e) for e in t.elements)
	def on_primitive_string(self, t): return t
	def on_reference(self, t): return Reference(self._resolver.settle(t.inner), t.lifetime)
	def on_mutable_reference(self, t): return MutableReference(self._resolver.settle(t.inner), t.lifetime)
	def on_dereference(self, t): return t
	def on_trait_object(self, t): return TraitObject(self._resolver.settle_bound(b) for b in t.bounds)
	def on_data_structure(self, t): return t
	def on_path(self, t): return PathType(self._resolver.settle_path(t.path))
	def on_param(self, t): return t


class _NestedParams(ModelVisitor):
	""" Generic parameters inside tuples, references and path arguments. """
	def __init__(self, found:dict):
		self._found = found
	def on_infer(self, t): pass
	def on_tuple(self, t):
		for e in t.elements: e.visit(self)
	def on_primitive_string(self, t): pass
	def on_reference(self, t): t.inner.visit(self)
	def on_mutable_reference(self, t): t.inner.visit(self)
	def on_dereference(self, t): pass
	def on_trait_object(self, t): pass
	def on_data_structure(self, t): pass
	def on_path(self, t):
		for segment in t.path.segments:
			arguments = segment.arguments
			if isinstance(arguments, Parenthesized):
				raise UnsupportedConstruct("Parenthesized generic arguments", t)
			if isinstance(arguments, AngleBracketed):
				for a in arguments.args:
					if isinstance(a, Type): a.visit(self)
	def on_param(self, t): self._found.setdefault(t, None)
