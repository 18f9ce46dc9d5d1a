"""
Bound collection: the part that drives everything else.

Given one generic implementation and a record of every call its methods make,
work out which constraints the implementation must declare on its own generic
parameters. The evidence is the correspondence between each call's argument
types and the callee's declared parameter types; the candidate constraints
are whatever the implementing type, the implemented trait, and each callee
(and the type that owns it) already declare. Unification figures out which
types are the same; resolution and the relevance filter figure out which
candidate constraints survive, and in what form.

One call to `compute_trait_bounds` is one self-contained pass. Nothing
carries over to the next implementation.
"""
from typing import Any, NamedTuple, Optional
from .calculus import (
	Type, DataStructure, Path, Generics, GenericParamRef, ConstraintSet,
)
from .diagnostics import InferenceError, Report
from .relevance import RelevanceFilter
from .resolution import Resolver
from .unification import EqualitySets


# The records below come from the call-site recorder.

class Signature(NamedTuple):
	inputs: tuple[Type, ...]
	generics: Optional[Generics] = None

class Callee(NamedTuple):
	signature: Signature
	parent: Optional[Generics] = None  # Generics of the owning type or trait, if any.
	name: str = "<function>"

class Invocation(NamedTuple):
	callee: Callee
	args: tuple[Type, ...]  # Static types of the argument expressions
	site: Any = None  # Whatever the driver uses to point at source code

class Function(NamedTuple):
	name: str
	invocations: tuple[Invocation, ...] = ()

class TraitRef(NamedTuple):
	path: Path
	generics: Optional[Generics] = None

class Implementation(NamedTuple):
	ty: Type
	trait: Optional[TraitRef] = None
	functions: tuple[Function, ...] = ()

	def declared_generics(self) -> list[Generics]:
		""" The generics of the implementing type and of the trait, as far as they exist. """
		found = []
		if isinstance(self.ty, DataStructure): found.append(self.ty.generics)
		if self.trait is not None and self.trait.generics is not None: found.append(self.trait.generics)
		return found


def compute_trait_bounds(implementation:Implementation, report:Optional[Report]=None, legacy_merge:bool=False) -> ConstraintSet:
	"""
	The constraints the implementation must declare, in a deterministic order.
	Raises some kind of InferenceError if the evidence makes no sense.
	"""
	report = report or Report()
	constraints = ConstraintSet()
	sets = EqualitySets(report, legacy_merge=legacy_merge)
	relevant_params: dict[GenericParamRef, None] = {}

	for generics in implementation.declared_generics():
		constraints.update(generics.constraints)
		for param in generics.type_params(): relevant_params[param] = None

	for function in implementation.functions:
		_collect_function(function, constraints, sets, report)
	sets.forget_site()

	resolver = Resolver(sets)
	try:
		relevant_sets = resolver.param_closure(relevant_params)
		report.info("Relevant parameters:", list(relevant_params), "in sets", sorted(relevant_sets))
		result = RelevanceFilter(resolver, relevant_sets).filter(constraints)
	except InferenceError as ex:
		_blame(ex, sets)
		raise
	report.info("Kept", len(result), "of", len(constraints), "candidate constraints:", result)
	return result


def _collect_function(function:Function, constraints:ConstraintSet, sets:EqualitySets, report:Report):
	for invocation in function.invocations:
		callee = invocation.callee
		site = invocation if invocation.site is None else invocation.site
		report.info("In", function.name, "call to", callee.name, "with", list(invocation.args))
		sets.introduced_at(function.name, site)
		try:
			for param_type, arg_type in zip(callee.signature.inputs, invocation.args):
				sets.insert_as_equal_to(param_type, arg_type, constraints)
		except InferenceError as ex:
			ex.pin(function.name, site)
			raise
		# Whatever the callee needs, the caller may need too.
		if callee.parent is not None:
			constraints.update(callee.parent.constraints)
		if callee.signature.generics is not None:
			constraints.update(callee.signature.generics.constraints)


def _blame(ex:InferenceError, sets:EqualitySets):
	"""
	Resolution and filtering happen after the fact, so an error from there
	gets pinned to the call that most recently brought in one of its operands.
	"""
	origins = [o for o in map(sets.origin_of, ex.operands) if o is not None]
	if origins:
		_, function, site = max(origins)
		ex.pin(function, site)


def infer_bounds(implementation:Implementation, report:Report, legacy_merge:bool=False) -> Optional[ConstraintSet]:
	"""
	For drivers that would rather skip one implementation than stop the presses:
	failures land in the report and the answer is None.
	"""
	try:
		return compute_trait_bounds(implementation, report, legacy_merge=legacy_merge)
	except InferenceError as ex:
		report.inference_failed(ex, implementation.ty)
		return None
