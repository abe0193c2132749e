import unittest

from . import test_calendar, test_store, test_trips, test_stops
from . import test_frequencies, test_continuations, test_notes, test_engine


def load_tests(loader=None, tests=None, pattern=None):
	if not loader: loader = unittest.defaultTestLoader
	if not tests: tests = unittest.TestSuite()
	for mod in ( test_calendar, test_store, test_trips, test_stops,
			test_frequencies, test_continuations, test_notes, test_engine ):
		tests.addTests(loader.loadTestsFromModule(mod))
	return tests

class SpecificTestCasePicker:
	def __init__(self): self.suite = load_tests()
	def __getattr__(self, k):
		for test in iter_tests(self.suite):
			if test._testMethodName == k: return lambda: test
		raise AttributeError('No such test case: {}'.format(k))

def iter_tests(suite):
	for test in suite:
		if isinstance(test, unittest.TestSuite): yield from iter_tests(test)
		else: yield test

case = SpecificTestCasePicker()
