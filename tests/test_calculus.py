import unittest

from inferbound.calculus import (
	Path, PathSegment, PathType, AngleBracketed, Parenthesized, GenericParamRef,
	Reference, MutableReference, Dereference, Tuple, TraitObject, DataStructure, Field,
	Generics, PredicateType, PredicateLifetime, LifetimeBound, ConstraintSet, trait,
	INFER, STR, UNIT, Type,
)
from inferbound.context import GenerationContext
from inferbound.diagnostics import UnsupportedConstruct


def vec(arg): return PathType(Path.of("Vec", arg))

class ValueSemanticsTests(unittest.TestCase):
	def setUp(self) -> None:
		self.ctx = GenerationContext()
		self.P = self.ctx.type_param("P")
		self.Q = self.ctx.type_param("Q")

	def test_references_of_different_kinds_differ(self):
		P = self.P
		self.assertNotEqual(Reference(P), MutableReference(P))
		self.assertEqual(Reference(P), P.reference())
		self.assertEqual(MutableReference(P), P.reference_mut())
		self.assertEqual(2, len({Reference(P), MutableReference(P), Reference(P)}))

	def test_params_compare_by_number(self):
		twin = self.ctx.type_param("P")
		self.assertNotEqual(self.P, twin)
		self.assertEqual(self.P, GenericParamRef(self.P.number, "anything"))
		self.assertLess(self.P, twin)

	def test_structural_equality(self):
		self.assertEqual(vec(self.P), vec(self.P))
		self.assertNotEqual(vec(self.P), vec(self.Q))
		self.assertEqual(Tuple([self.P, STR]), Tuple((self.P, STR)))
		self.assertEqual(UNIT, Type.unit())
		self.assertNotEqual(UNIT, INFER)

	def test_dereference(self):
		self.assertEqual(self.P, Reference(self.P).dereference())
		self.assertEqual(self.P, MutableReference(self.P).dereference())
		self.assertEqual(Dereference(self.P), self.P.dereference())

	def test_tuple_element(self):
		self.assertEqual(STR, Tuple([self.P, STR]).tuple_element(1))
		with self.assertRaises(UnsupportedConstruct):
			self.P.tuple_element(0)

	def test_fields_through_references(self):
		lt = self.ctx.lifetime("'a")
		pair = DataStructure("Pair", Generics((self.P,)), [Field("left", self.P), Field("right", STR)])
		self.assertEqual((self.P, STR), pair.fields())
		self.assertEqual((Reference(self.P, lt), Reference(STR, lt)), Reference(pair, lt).fields())
		self.assertEqual((MutableReference(self.P), MutableReference(STR)), MutableReference(pair).fields())
		with self.assertRaises(UnsupportedConstruct):
			STR.fields()

	def test_generic_params_in_order_of_appearance(self):
		ty = Tuple([vec(self.Q), Reference(self.P), self.Q])
		self.assertEqual((self.Q, self.P), ty.generic_params())
		self.assertEqual((), STR.generic_params())


class PathTests(unittest.TestCase):

	def test_simple_path(self):
		path = Path.simple("::std::fmt::Display")
		self.assertTrue(path.is_global)
		self.assertEqual(["std", "fmt", "Display"], [s.name for s in path.segments])
		self.assertTrue(path.last.arguments.is_empty())
		self.assertEqual(Path.of("Clone"), Path.simple("Clone"))
		self.assertEqual(Path.simple("std::fmt::Display"), Path.simple("std::fmt").child("Display"))

	def test_simple_path_rejects_arguments(self):
		for bogon in ["Vec<T>", "Fn(A) -> B", "std::iter::Iterator<Item=u8>", "a::::b", ""]:
			with self.subTest(bogon):
				with self.assertRaises(ValueError):
					Path.simple(bogon)

	def test_empty_path_is_no_path(self):
		with self.assertRaises(ValueError):
			Path([])

	def test_global_and_local_differ(self):
		self.assertNotEqual(Path.simple("::a::B"), Path.simple("a::B"))

	def test_with_last_arguments(self):
		ctx = GenerationContext()
		T = ctx.type_param("T")
		path = Path.simple("std::vec::Vec").with_last_arguments(AngleBracketed([T]))
		self.assertEqual(AngleBracketed([T]), path.last.arguments)
		self.assertTrue(path.segments[0].arguments.is_empty())


class RenderTests(unittest.TestCase):
	def test_rendering(self):
		ctx = GenerationContext()
		P = ctx.type_param("P")
		a = ctx.lifetime("'a")
		fn = PathType(Path([PathSegment("Fn", Parenthesized([P], STR))]))
		for expect, term in [
			("_", INFER),
			("()", UNIT),
			("(P,)", Tuple([P])),
			("(P, str)", Tuple([P, STR])),
			("&'a P", Reference(P, a)),
			("&mut P", MutableReference(P)),
			("*P", Dereference(P)),
			("Vec<P>", vec(P)),
			("::std::borrow::Cow<'a, str>", PathType(Path.simple("::std::borrow::Cow").with_last_arguments(AngleBracketed([a, STR])))),
			("Fn(P) -> str", fn),
			("dyn Iterator + 'a", TraitObject([trait("Iterator"), LifetimeBound(a)])),
			("Pair<P, 'a>", DataStructure("Pair", Generics((P, a)))),
			("P: Clone + Into<str>", PredicateType(P, [trait("Clone"), trait("Into", STR)])),
			("for<'a> P: Fn", PredicateType(P, [trait("Fn")], [a])),
			("'a: 'a", PredicateLifetime(a, [a])),
		]:
			with self.subTest(expect):
				self.assertEqual(expect, repr(term))


class FreshGenericsTests(unittest.TestCase):
	def setUp(self) -> None:
		self.ctx = GenerationContext()
		self.P = self.ctx.type_param("P")
		self.a = self.ctx.lifetime("'a")

	def test_params_and_lifetimes_are_replaced(self):
		mapping = self.ctx.refresh([self.P, self.a])
		Q, b = mapping[self.P], mapping[self.a]
		self.assertEqual(vec(Q), vec(self.P).with_fresh_generics(mapping))
		self.assertEqual(Reference(Q, b), Reference(self.P, self.a).with_fresh_generics(mapping))
		original = PredicateType(self.P, [trait("Into", self.P), LifetimeBound(self.a)])
		expect = PredicateType(Q, [trait("Into", Q), LifetimeBound(b)])
		self.assertEqual(expect, original.with_fresh_generics(mapping))
		generics = Generics((self.P, self.a), (original,))
		self.assertEqual(Generics((Q, b), (expect,)), generics.with_fresh_generics(mapping))

	def test_unmapped_params_stay_put(self):
		other = self.ctx.type_param("Other")
		mapping = self.ctx.refresh([self.P])
		self.assertEqual(Tuple([mapping[self.P], other]), Tuple([self.P, other]).with_fresh_generics(mapping))

	def test_data_structures_cannot_be_refreshed(self):
		ds = DataStructure("Thing", Generics((self.P,)))
		with self.assertRaises(UnsupportedConstruct):
			ds.with_fresh_generics(self.ctx.refresh([self.P]))


class ConstraintSetTests(unittest.TestCase):
	def test_deduplicates_semantically_and_keeps_order(self):
		ctx = GenerationContext()
		P, Q = ctx.type_param("P"), ctx.type_param("Q")
		cs = ConstraintSet()
		self.assertTrue(cs.insert(PredicateType(Q, [trait("Clone")])))
		self.assertTrue(cs.insert(PredicateType(P, [trait("Clone")])))
		self.assertFalse(cs.insert(PredicateType(Q, [trait("Clone")])))
		self.assertEqual(2, len(cs))
		self.assertEqual([PredicateType(Q, [trait("Clone")]), PredicateType(P, [trait("Clone")])], list(cs))
		self.assertEqual([PredicateType(P, [trait("Clone")]), PredicateType(Q, [trait("Clone")])], cs.sorted())
		self.assertIn(PredicateType(P, [trait("Clone")]), cs)

	def test_equality_ignores_order(self):
		ctx = GenerationContext()
		P = ctx.type_param("P")
		one, two = PredicateType(P, [trait("Clone")]), PredicateType(P, [trait("Debug")])
		self.assertEqual(ConstraintSet([one, two]), ConstraintSet([two, one, two]))


if __name__ == '__main__':
	unittest.main()
