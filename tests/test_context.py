import unittest

from inferbound.calculus import GenericParamRef, LifetimeRef, Path, PathType
from inferbound.context import GenerationContext


class GenerationContextTests(unittest.TestCase):
	def test_numbers_only_go_up(self):
		ctx = GenerationContext()
		a = ctx.type_param("A")
		lt = ctx.lifetime("'a")
		b = ctx.type_param("B")
		self.assertLess(a.number, lt.number)
		self.assertLess(lt.number, b.number)
		self.assertIsInstance(a, GenericParamRef)
		self.assertIsInstance(lt, LifetimeRef)

	def test_contexts_are_independent(self):
		first, second = GenerationContext(), GenerationContext()
		for _ in range(3): first.type_param("X")
		self.assertEqual(0, second.type_param("Y").number)

	def test_names_come_back(self):
		ctx = GenerationContext()
		b = ctx.type_param("B")
		lt = ctx.lifetime("'life")
		self.assertEqual("B", ctx.name_of(b))
		self.assertEqual("life", ctx.name_of(lt))
		self.assertEqual("'life", repr(lt))
		self.assertEqual(b, ctx.exemplar(b.number))

	def test_refresh_makes_distinct_params_with_the_same_names(self):
		ctx = GenerationContext()
		t, lt = ctx.type_param("T"), ctx.lifetime("'a")
		mapping = ctx.refresh([t, lt])
		self.assertNotEqual(t, mapping[t])
		self.assertEqual("T", mapping[t].name)
		self.assertIsInstance(mapping[lt], LifetimeRef)
		self.assertEqual("a", mapping[lt].name)


class ParamMapTests(unittest.TestCase):
	def setUp(self) -> None:
		self.ctx = GenerationContext()
		self.outer = self.ctx.param_map()
		self.T, self.a = self.outer.scope("T", "'a")

	def test_lookup(self):
		self.assertIs(self.T, self.outer["T"])
		self.assertIn("'a", self.outer)
		self.assertNotIn("U", self.outer)
		self.assertIsNone(self.outer.lookup("U"))
		with self.assertRaises(KeyError):
			self.outer["U"]

	def test_parameters_are_told_apart_from_named_types(self):
		self.assertEqual(self.T, self.outer.type_named("T"))
		self.assertEqual(PathType(Path.of("String")), self.outer.type_named("String"))
		# A lifetime by that name is no type parameter.
		self.assertEqual(PathType(Path.of("a")), self.outer.type_named("a"))

	def test_nested_scopes(self):
		inner = self.outer.inner()
		u = inner.declare("U")
		self.assertIs(self.T, inner["T"])
		self.assertIs(u, inner["U"])
		self.assertNotIn("U", self.outer)

	def test_no_redeclaring(self):
		with self.assertRaises(KeyError):
			self.outer.declare("T")


if __name__ == '__main__':
	unittest.main()
