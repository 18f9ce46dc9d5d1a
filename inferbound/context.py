"""
Generic parameters and lifetimes need identities that stay put for the
duration of a generation run, so that "the same T" means the same thing
at every call site and the tie-breaker between two parameters (lowest
number wins) comes out the same every time.

All of that lives in a GenerationContext, which the driver makes once per
top-level run and passes along. Nothing is global, so independent runs
(and unit tests) cannot step on each other.
"""
from typing import Iterable, Optional, Union
from boozetools.support.foundation import EquivalenceClassifier
from .calculus import GenericParam, GenericParamRef, LifetimeRef, Path, PathType, Type


class GenerationContext:
	"""
	Hands out numbers. They only ever go up, shared between type
	parameters and lifetimes, so every parameter of a run is distinct.
	"""
	def __init__(self):
		self._numbering = EquivalenceClassifier()

	def _next_number(self) -> int:
		return len(self._numbering.catalog)

	def type_param(self, name:str) -> GenericParamRef:
		param = GenericParamRef(self._next_number(), name)
		self._numbering.classify(param)
		return param

	def lifetime(self, name:str) -> LifetimeRef:
		lifetime = LifetimeRef(self._next_number(), name.lstrip("'"))
		self._numbering.classify(lifetime)
		return lifetime

	def exemplar(self, number:int) -> GenericParam:
		return self._numbering.exemplars[number]

	def name_of(self, param:GenericParam) -> str:
		return self.exemplar(param.number).name

	def refresh(self, params:Iterable[GenericParam]) -> dict[GenericParam, GenericParam]:
		"""
		Fresh parameters standing in for the given ones, for use with
		`with_fresh_generics` when a signature gets instantiated anew.
		"""
		mapping = {}
		for p in params:
			if isinstance(p, GenericParamRef): mapping[p] = self.type_param(p.name)
			else: mapping[p] = self.lifetime(p.name)
		return mapping

	def param_map(self) -> "ParamMap":
		return ParamMap(self)


class ParamMap:
	"""
	The names of generic parameters in scope at some declaration.
	A syntax translator uses this to tell a parameter like `T`
	apart from some named type that happens to be called `T`.
	"""
	def __init__(self, context:GenerationContext, outer:Optional["ParamMap"]=None):
		self._context = context
		self._outer = outer
		self._bindings: dict[str, GenericParam] = {}

	def declare(self, name:str) -> GenericParam:
		if name in self._bindings:
			raise KeyError("Generic parameter %r is declared twice."%name)
		if name.startswith("'"): it = self._context.lifetime(name)
		else: it = self._context.type_param(name)
		self._bindings[name] = it
		return it

	def scope(self, *names:str) -> tuple[GenericParam, ...]:
		return tuple(self.declare(n) for n in names)

	def inner(self) -> "ParamMap":
		""" A nested scope, e.g. for a method's own generics inside an impl. """
		return ParamMap(self._context, self)

	def lookup(self, name:str) -> Optional[GenericParam]:
		if name in self._bindings: return self._bindings[name]
		if self._outer is not None: return self._outer.lookup(name)
		return None

	def __contains__(self, name:str): return self.lookup(name) is not None

	def __getitem__(self, name:str) -> GenericParam:
		it = self.lookup(name)
		if it is None: raise KeyError(name)
		return it

	def type_named(self, name:str) -> Union[GenericParamRef, Type]:
		""" A parameter if one is in scope by that name, otherwise a plain path. """
		it = self.lookup(name)
		if isinstance(it, GenericParamRef): return it
		return PathType(Path.simple(name))
