"""
Things that go wrong, and what to say about them.

Bound inference has no way to limp along after a failure: the constraint
set is either complete and consistent, or there is none. So the failures
are exceptions, and they unwind all the way out of the analysis of the
implementation at hand. The driver that embeds this package decides what
to do about it, and the Report class is the place to tell the user.
"""
import sys, random
from typing import Any, Optional, Sequence


class TooManyIssues(Exception):
	pass


class InferenceError(Exception):
	"""
	Base of the fatal errors. The operands are whatever was being compared
	at the time. The orchestrator fills in `function` and `site` on the way
	out, so that a diagnostic can be pinned to the offending call.
	"""
	headline = "Bound inference failed."
	site: Any = None
	function: Optional[str] = None

	def __init__(self, message:str, *operands):
		super().__init__(message, *operands)
		self.message = message
		self.operands = operands

	def __str__(self):
		if self.operands:
			return "%s: %s"%(self.message, ", ".join(map(repr, self.operands)))
		return self.message

	def pin(self, function:str, site:Any):
		""" Remember where it happened, unless something nearer already did. """
		if self.site is None:
			self.function, self.site = function, site

class ArityMismatch(InferenceError):
	""" Tuples or trait objects of different sizes got unified. """
	headline = "These types have different numbers of parts, so they cannot be the same."

class UnsupportedConstruct(InferenceError):
	""" Parenthesized arguments, qualified-self paths, exotic lifetime arrangements... """
	headline = "Bound inference does not (yet) understand something here."

class InternalInconsistency(InferenceError):
	""" The resolver met a pairing that the equality sets should never have allowed. """
	headline = "Bound inference has confused itself. This is a bug."


def _outburst():
	particle = ["Oh, ", "Well, ", "Aw, ", "", ""]
	minced_oaths = [
		'Ack', 'ARGH', 'Blargh', 'Confound it', 'Crud', 'Curses', "Crikey",
		'Drat', 'Fiddlesticks', 'Good Grief', "Great Scott", 'Heavens', 'Nuts', 'Rats',
	]
	resignations = [
		'I am undone.',
		'I cannot continue.',
		'I have no idea what the right answer is.',
		'I need to ask for help.',
	]
	return "%s%s! %s"%tuple(map(random.choice, (particle, minced_oaths, resignations)))


class Annotation:
	""" Something to point at, with an optional caption. """
	def __init__(self, site:Any, caption:str=""):
		self.site, self.caption = site, caption
	def illustrate(self) -> str:
		text = "  at %s"%(self.site,)
		if self.caption: text += "  <-- "+self.caption
		return text


class Pic:
	def __init__(self, intro:str, anns:list[Annotation], footer:Sequence[str]=()):
		self.intro, self._anns, self._footer = intro, anns, footer
	def as_text(self):
		lines = [self.intro, ""]
		lines.extend(ann.illustrate() for ann in self._anns)
		lines.extend(self._footer)
		return '\n'.join(lines)


class Report:
	"""
	Collects issues on behalf of the driver, and (when verbose)
	narrates the progress of an analysis to stderr.
	"""
	issues : list[Pic]

	def __init__(self, *, verbose:int=0, max_issues=3):
		self._verbose = verbose or 0   # Because None is incomparable.
		self.issues = []
		self._max_issues = max_issues

	def sick(self): return bool(self.issues)

	def issue(self, it:Pic):
		self.issues.append(it)
		if len(self.issues) == self._max_issues:
			raise TooManyIssues(self)

	def info(self, *args):
		if self._verbose:
			print(*args, file=sys.stderr)

	def complain_to_console(self):
		""" Emit all the issues to the console. """
		if self.issues:
			print("*"*60, file=sys.stderr)
			print(_outburst(), file=sys.stderr)
		for i in self.issues:
			print("  -"*20, file=sys.stderr)
			print(i.as_text(), file=sys.stderr)
		sys.stderr.flush()

	def assert_no_issues(self, message):
		""" Does what it says on the tin """
		if self.issues:
			self.complain_to_console()
			raise AssertionError(_outburst()+" "+message)

	def inference_failed(self, ex:InferenceError, implementation:Any=None):
		""" Pin a fatal inference error to the call site where it happened. """
		intro = ex.headline
		anns = []
		if ex.site is not None:
			caption = "in %s"%ex.function if ex.function else ""
			anns.append(Annotation(ex.site, caption))
		footer = [" - "+str(ex)]
		if implementation is not None:
			footer.append(" - while inferring bounds for the implementation of %r"%(implementation,))
		self.issue(Pic(intro, anns, footer))
