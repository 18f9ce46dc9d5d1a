"""
The data over which bound inference operates.

Types, paths, bounds and constraints are all immutable value objects.
Equality and hashing go by the concrete class plus the contents, so that
(for example) a shared reference and a mutable reference to the same thing
are never confused with one another, even though the unification rules
deliberately let one flow into the other.

Generic parameters are the exception that proves the rule: they compare
by the identifying number the generation context handed out, and the name
only comes along for the ride so the things can be rendered.
"""
from typing import Iterable, Mapping, NamedTuple, Optional, Sequence, Union
from .diagnostics import UnsupportedConstruct


class ModelValue:
	"""Value objects: compare by class and key, hash the same way."""
	_key: tuple

	def __init__(self, *key):
		self._key = key
		self._hash = hash((type(self),)+key)
	def __hash__(self): return self._hash
	def __eq__(self, other): return type(self) is type(other) and self._key == other._key
	def __repr__(self) -> str:
		it = self.visit(Render())
		assert isinstance(it, str), (it, type(self))
		return it
	def visit(self, visitor:"ModelVisitor"): raise NotImplementedError(type(self))
	def with_fresh_generics(self, mapping:"FreshMap"): raise NotImplementedError(type(self))


class LifetimeRef(ModelValue):
	""" A lifetime parameter. Like type parameters, these have identity. """
	def __init__(self, number:int, name:str):
		self.number, self.name = number, name
		super().__init__(number)
	def visit(self, visitor): return visitor.on_lifetime(self)
	def with_fresh_generics(self, mapping): return mapping.get(self, self)
	def __lt__(self, other:"LifetimeRef"): return self.number < other.number

###################
#  Types

class Type(ModelValue):

	@staticmethod
	def unit() -> "Tuple":
		return UNIT

	def reference(self) -> "Reference":
		return Reference(self)

	def reference_mut(self) -> "MutableReference":
		return MutableReference(self)

	def dereference(self) -> "Type":
		return Dereference(self)

	def tuple_element(self, index:int) -> "Type":
		raise UnsupportedConstruct("Only a tuple has elements", self)

	def fields(self) -> tuple["Type", ...]:
		""" The types of the fields of a data structure, seen through any reference. """
		raise UnsupportedConstruct("Only a data structure has fields", self)

	def generic_params(self) -> tuple["GenericParamRef", ...]:
		""" Which generic parameters this type mentions, in order of first appearance. """
		found = {}
		self.visit(_ParamFinder(found))
		return tuple(found)


class Infer(Type):
	""" The placeholder type: "I don't know". Anything is more concrete. """
	def __init__(self): super().__init__()
	def visit(self, visitor): return visitor.on_infer(self)
	def with_fresh_generics(self, mapping): return self

class Tuple(Type):
	def __init__(self, elements:Iterable[Type]):
		self.elements = tuple(elements)
		assert all(isinstance(e, Type) for e in self.elements), self.elements
		super().__init__(self.elements)
	def visit(self, visitor): return visitor.on_tuple(self)
	def tuple_element(self, index:int) -> Type: return self.elements[index]
	def with_fresh_generics(self, mapping):
		return Tuple(e.with_fresh_generics(mapping) for e in self.elements)

class PrimitiveString(Type):
	def __init__(self): super().__init__()
	def visit(self, visitor): return visitor.on_primitive_string(self)
	def with_fresh_generics(self, mapping): return self

class _Pointer(Type):
	""" Common structure of both kinds of reference. """
	def __init__(self, inner:Type, lifetime:Optional[LifetimeRef]=None):
		assert isinstance(inner, Type), inner
		self.inner, self.lifetime = inner, lifetime
		super().__init__(inner, lifetime)
	def dereference(self) -> Type: return self.inner
	def fields(self) -> tuple[Type, ...]:
		return tuple(type(self)(f, self.lifetime) for f in self.inner.fields())
	def with_fresh_generics(self, mapping):
		lifetime = None if self.lifetime is None else self.lifetime.with_fresh_generics(mapping)
		return type(self)(self.inner.with_fresh_generics(mapping), lifetime)

class Reference(_Pointer):
	def visit(self, visitor): return visitor.on_reference(self)

class MutableReference(_Pointer):
	def visit(self, visitor): return visitor.on_mutable_reference(self)

class Dereference(Type):
	def __init__(self, inner:Type):
		self.inner = inner
		super().__init__(inner)
	def visit(self, visitor): return visitor.on_dereference(self)
	def with_fresh_generics(self, mapping): return Dereference(self.inner.with_fresh_generics(mapping))

class TraitObject(Type):
	def __init__(self, bounds:Iterable["Bound"]):
		self.bounds = tuple(bounds)
		super().__init__(self.bounds)
	def visit(self, visitor): return visitor.on_trait_object(self)
	def with_fresh_generics(self, mapping):
		return TraitObject(b.with_fresh_generics(mapping) for b in self.bounds)

class Field(NamedTuple):
	name: Optional[str]  # None for tuple-like structures
	element: Type

class DataStructure(Type):
	""" The type being implemented, complete with its generic declarations. """
	def __init__(self, name:str, generics:"Generics", fields:Iterable[Field]=()):
		self.name = name
		self.generics = generics
		self.field_list = tuple(fields)
		super().__init__(name, generics, self.field_list)
	def visit(self, visitor): return visitor.on_data_structure(self)
	def fields(self) -> tuple[Type, ...]: return tuple(f.element for f in self.field_list)
	def with_fresh_generics(self, mapping):
		raise UnsupportedConstruct("Cannot refresh the generics of a data structure", self)

class PathType(Type):
	def __init__(self, path:"Path"):
		assert isinstance(path, Path), path
		self.path = path
		super().__init__(path)
	def visit(self, visitor): return visitor.on_path(self)
	def with_fresh_generics(self, mapping): return PathType(self.path.with_fresh_generics(mapping))

class GenericParamRef(Type):
	""" A type parameter. Compares by number; the name is just for show. """
	def __init__(self, number:int, name:str):
		self.number, self.name = number, name
		super().__init__(number)
	def visit(self, visitor): return visitor.on_param(self)
	def with_fresh_generics(self, mapping): return mapping.get(self, self)
	def __lt__(self, other:"GenericParamRef"): return self.number < other.number

INFER = Infer()
STR = PrimitiveString()
UNIT = Tuple(())

GenericParam = Union[GenericParamRef, LifetimeRef]
FreshMap = Mapping[GenericParam, GenericParam]

###################
#  Paths

# A generic argument is either a Type or a LifetimeRef.
GenericArgument = Union[Type, LifetimeRef]

class PathArguments(ModelValue):
	def is_empty(self) -> bool: return False

class _NoArguments(PathArguments):
	def visit(self, visitor): return visitor.on_no_arguments(self)
	def is_empty(self) -> bool: return True
	def with_fresh_generics(self, mapping): return self

class AngleBracketed(PathArguments):
	""" The <A, 'b, C> part of a path segment. """
	def __init__(self, args:Iterable[GenericArgument]):
		self.args = tuple(args)
		assert all(isinstance(a, (Type, LifetimeRef)) for a in self.args), self.args
		super().__init__(self.args)
	def visit(self, visitor): return visitor.on_angle_bracketed(self)
	def __len__(self): return len(self.args)
	def with_fresh_generics(self, mapping):
		return AngleBracketed(a.with_fresh_generics(mapping) for a in self.args)

class Parenthesized(PathArguments):
	""" The (A, B) -> C part of something like Fn(A, B) -> C """
	def __init__(self, inputs:Iterable[Type], output:Optional[Type]=None):
		self.inputs, self.output = tuple(inputs), output
		super().__init__(self.inputs, output)
	def visit(self, visitor): return visitor.on_parenthesized(self)
	def with_fresh_generics(self, mapping):
		output = None if self.output is None else self.output.with_fresh_generics(mapping)
		return Parenthesized((i.with_fresh_generics(mapping) for i in self.inputs), output)

NO_ARGUMENTS = _NoArguments()

class PathSegment(ModelValue):
	def __init__(self, name:str, arguments:PathArguments=NO_ARGUMENTS):
		assert isinstance(arguments, PathArguments), arguments
		self.name, self.arguments = name, arguments
		super().__init__(name, arguments)
	def visit(self, visitor): return visitor.on_segment(self)
	def with_fresh_generics(self, mapping):
		return PathSegment(self.name, self.arguments.with_fresh_generics(mapping))

class Path(ModelValue):
	def __init__(self, segments:Iterable[PathSegment], is_global:bool=False):
		self.segments = tuple(segments)
		if not self.segments: raise ValueError("A path needs at least one segment.")
		self.is_global = bool(is_global)
		super().__init__(self.is_global, self.segments)
	def visit(self, visitor): return visitor.on_path_proper(self)

	@staticmethod
	def of(name:str, *args:GenericArgument) -> "Path":
		""" A single-segment path, maybe with angle-bracketed arguments. """
		return Path([PathSegment(name, AngleBracketed(args) if args else NO_ARGUMENTS)])

	@staticmethod
	def simple(text:str) -> "Path":
		"""
		Build a path from a plain qualified name like `::std::fmt::Display`.
		No generic arguments are allowed anywhere in the name.
		"""
		text = text.strip()
		is_global = text.startswith("::")
		if is_global: text = text[2:]
		names = [n.strip() for n in text.split("::")]
		for name in names:
			if not name.isidentifier():
				raise ValueError("%r is not a simple path: bad segment %r"%(text, name))
		return Path([PathSegment(n) for n in names], is_global)

	def child(self, name:str) -> "Path":
		return Path(self.segments+(PathSegment(name),), self.is_global)

	@property
	def last(self) -> PathSegment: return self.segments[-1]

	def with_last_arguments(self, arguments:PathArguments) -> "Path":
		last = PathSegment(self.last.name, arguments)
		return Path(self.segments[:-1]+(last,), self.is_global)

	def with_fresh_generics(self, mapping):
		return Path((s.with_fresh_generics(mapping) for s in self.segments), self.is_global)

###################
#  Bounds and constraints

class Bound(ModelValue): pass

class TraitBound(Bound):
	def __init__(self, path:Path, lifetimes:Iterable[LifetimeRef]=()):
		self.path, self.lifetimes = path, tuple(lifetimes)
		super().__init__(path, self.lifetimes)
	def visit(self, visitor): return visitor.on_trait_bound(self)
	def with_fresh_generics(self, mapping):
		return TraitBound(self.path.with_fresh_generics(mapping), (lt.with_fresh_generics(mapping) for lt in self.lifetimes))

class LifetimeBound(Bound):
	def __init__(self, lifetime:LifetimeRef):
		self.lifetime = lifetime
		super().__init__(lifetime)
	def visit(self, visitor): return visitor.on_lifetime_bound(self)
	def with_fresh_generics(self, mapping): return LifetimeBound(self.lifetime.with_fresh_generics(mapping))

def trait(text:str, *args:GenericArgument) -> TraitBound:
	""" Convenience: a trait bound from a qualified name, with arguments on the last segment. """
	path = Path.simple(text)
	if args: path = path.with_last_arguments(AngleBracketed(args))
	return TraitBound(path)

class GenericConstraint(ModelValue): pass

class PredicateType(GenericConstraint):
	""" bounded_type: bound + bound + ... (maybe under a for<'a> binder) """
	def __init__(self, bounded_type:Type, bounds:Iterable[Bound], lifetimes:Iterable[LifetimeRef]=()):
		self.bounded_type = bounded_type
		self.bounds = tuple(bounds)
		self.lifetimes = tuple(lifetimes)
		super().__init__(bounded_type, self.bounds, self.lifetimes)
	def visit(self, visitor): return visitor.on_predicate_type(self)
	def with_fresh_generics(self, mapping):
		return PredicateType(
			self.bounded_type.with_fresh_generics(mapping),
			(b.with_fresh_generics(mapping) for b in self.bounds),
			(lt.with_fresh_generics(mapping) for lt in self.lifetimes),
		)

class PredicateLifetime(GenericConstraint):
	""" 'a: 'b + 'c """
	def __init__(self, lifetime:LifetimeRef, bounds:Iterable[LifetimeRef]):
		self.lifetime, self.bounds = lifetime, tuple(bounds)
		super().__init__(lifetime, self.bounds)
	def visit(self, visitor): return visitor.on_predicate_lifetime(self)
	def with_fresh_generics(self, mapping):
		return PredicateLifetime(self.lifetime.with_fresh_generics(mapping), (b.with_fresh_generics(mapping) for b in self.bounds))

class Generics(NamedTuple):
	params: tuple[GenericParam, ...] = ()
	constraints: tuple[GenericConstraint, ...] = ()

	def type_params(self) -> tuple[GenericParamRef, ...]:
		return tuple(p for p in self.params if isinstance(p, GenericParamRef))

	def with_fresh_generics(self, mapping:FreshMap) -> "Generics":
		return Generics(
			tuple(p.with_fresh_generics(mapping) for p in self.params),
			tuple(c.with_fresh_generics(mapping) for c in self.constraints),
		)

NO_GENERICS = Generics()


class ConstraintSet:
	"""
	Semantically-deduplicated constraints, iterated in the order first seen.
	That order is what makes the output deterministic.
	"""
	def __init__(self, constraints:Iterable[GenericConstraint]=()):
		self._members: dict[GenericConstraint, None] = {}
		for c in constraints: self.insert(c)
	def insert(self, constraint:GenericConstraint) -> bool:
		""" Returns whether the constraint was new. """
		assert isinstance(constraint, GenericConstraint), constraint
		if constraint in self._members: return False
		self._members[constraint] = None
		return True
	def update(self, constraints:Iterable[GenericConstraint]):
		for c in constraints: self.insert(c)
	def __contains__(self, item): return item in self._members
	def __iter__(self): return iter(self._members)
	def __len__(self): return len(self._members)
	def __eq__(self, other):
		if isinstance(other, ConstraintSet): return self._members.keys() == other._members.keys()
		return NotImplemented
	def __repr__(self): return "{%s}"%", ".join(map(repr, self))
	def sorted(self) -> list[GenericConstraint]:
		""" Order by the rendered text, for the benefit of code generators. """
		return sorted(self, key=repr)

###################
#

class ModelVisitor:
	def on_infer(self, t:Infer): raise NotImplementedError(type(self))
	def on_tuple(self, t:Tuple): raise NotImplementedError(type(self))
	def on_primitive_string(self, t:PrimitiveString): raise NotImplementedError(type(self))
	def on_reference(self, t:Reference): raise NotImplementedError(type(self))
	def on_mutable_reference(self, t:MutableReference): raise NotImplementedError(type(self))
	def on_dereference(self, t:Dereference): raise NotImplementedError(type(self))
	def on_trait_object(self, t:TraitObject): raise NotImplementedError(type(self))
	def on_data_structure(self, t:DataStructure): raise NotImplementedError(type(self))
	def on_path(self, t:PathType): raise NotImplementedError(type(self))
	def on_param(self, t:GenericParamRef): raise NotImplementedError(type(self))
	def on_lifetime(self, lt:LifetimeRef): raise NotImplementedError(type(self))
	def on_no_arguments(self, a:_NoArguments): raise NotImplementedError(type(self))
	def on_angle_bracketed(self, a:AngleBracketed): raise NotImplementedError(type(self))
	def on_parenthesized(self, a:Parenthesized): raise NotImplementedError(type(self))
	def on_segment(self, s:PathSegment): raise NotImplementedError(type(self))
	def on_path_proper(self, p:Path): raise NotImplementedError(type(self))
	def on_trait_bound(self, b:TraitBound): raise NotImplementedError(type(self))
	def on_lifetime_bound(self, b:LifetimeBound): raise NotImplementedError(type(self))
	def on_predicate_type(self, c:PredicateType): raise NotImplementedError(type(self))
	def on_predicate_lifetime(self, c:PredicateLifetime): raise NotImplementedError(type(self))


class Render(ModelVisitor):
	""" Return a Rust-flavored string representation of the term. """
	def _list(self, items:Sequence[ModelValue], sep=", "):
		return sep.join(i.visit(self) for i in items)
	def on_infer(self, t): return "_"
	def on_tuple(self, t):
		if len(t.elements) == 1: return "(%s,)"%t.elements[0].visit(self)
		return "(%s)"%self._list(t.elements)
	def on_primitive_string(self, t): return "str"
	def _pointer(self, sigil, t:_Pointer):
		lifetime = "" if t.lifetime is None else t.lifetime.visit(self)+" "
		return sigil+lifetime+t.inner.visit(self)
	def on_reference(self, t): return self._pointer("&", t)
	def on_mutable_reference(self, t): return self._pointer("&mut ", t)
	def on_dereference(self, t): return "*"+t.inner.visit(self)
	def on_trait_object(self, t): return "dyn "+self._list(t.bounds, " + ")
	def on_data_structure(self, t): return t.name+self._generic_params(t.generics)
	def _generic_params(self, generics:Generics):
		return "<%s>"%self._list(generics.params) if generics.params else ""
	def on_path(self, t): return t.path.visit(self)
	def on_param(self, t): return t.name
	def on_lifetime(self, lt): return "'"+lt.name
	def on_no_arguments(self, a): return ""
	def on_angle_bracketed(self, a): return "<%s>"%self._list(a.args)
	def on_parenthesized(self, a):
		output = "" if a.output is None else " -> "+a.output.visit(self)
		return "(%s)%s"%(self._list(a.inputs), output)
	def on_segment(self, s): return s.name+s.arguments.visit(self)
	def on_path_proper(self, p): return ("::" if p.is_global else "")+self._list(p.segments, "::")
	def on_trait_bound(self, b): return self._binder(b.lifetimes)+b.path.visit(self)
	def _binder(self, lifetimes):
		return "for<%s> "%self._list(lifetimes) if lifetimes else ""
	def on_lifetime_bound(self, b): return b.lifetime.visit(self)
	def on_predicate_type(self, c):
		return "%s%s: %s"%(self._binder(c.lifetimes), c.bounded_type.visit(self), self._list(c.bounds, " + "))
	def on_predicate_lifetime(self, c):
		return "%s: %s"%(c.lifetime.visit(self), self._list(c.bounds, " + "))


class _ParamFinder(ModelVisitor):
	""" Walks a type to collect the generic parameters it mentions. """
	def __init__(self, found:dict):
		self._found = found
	def _each(self, items):
		for i in items: i.visit(self)
	def on_infer(self, t): pass
	def on_tuple(self, t): self._each(t.elements)
	def on_primitive_string(self, t): pass
	def on_reference(self, t): t.inner.visit(self)
	def on_mutable_reference(self, t): t.inner.visit(self)
	def on_dereference(self, t): t.inner.visit(self)
	def on_trait_object(self, t): self._each(t.bounds)
	def on_data_structure(self, t): self._each(t.generics.type_params())
	def on_path(self, t): t.path.visit(self)
	def on_param(self, t): self._found.setdefault(t, None)
	def on_lifetime(self, lt): pass
	def on_no_arguments(self, a): pass
	def on_angle_bracketed(self, a): self._each(a.args)
	def on_parenthesized(self, a):
		self._each(a.inputs)
		if a.output is not None: a.output.visit(self)
	def on_segment(self, s): s.arguments.visit(self)
	def on_path_proper(self, p): self._each(p.segments)
	def on_trait_bound(self, b): b.path.visit(self)
	def on_lifetime_bound(self, b): pass
