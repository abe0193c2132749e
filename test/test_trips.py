import itertools as it, operator as op, functools as ft
from pathlib import Path
import unittest

from . import _common as c

tr = c.gt.trips


class TripOrderTests(unittest.TestCase):

	@classmethod
	def setUpClass(cls):
		path_file = Path(__file__)
		cls.data = c.load_test_data(path_file.parent, path_file.stem, 'sorting')

	def test_sorting_policies(self):
		for name in 'policies', 'loop', 'no_common_stop':
			test = self.data[name]
			trips = c.trips_from_data(test.trips)
			if 'common_stop' in test:
				self.assertEqual(tr.find_common_stop_id(trips), test.common_stop)
			for algo, order in test.order.items():
				for trips_src in trips, list(reversed(trips)):
					trips_sorted = tr.get_sorter(algo).sort(trips_src)
					self.assertEqual(c.trip_ids(trips_sorted), order, [name, algo])

	def test_unknown_policy(self):
		with self.assertRaises(c.gt.t.public.ConfigurationError): tr.get_sorter('random')
		with self.assertRaises(c.gt.t.public.ConfigurationError):
			tr.order_trips(list(), c.gt.engine.EngineConf(sorting_algorithm='random'))

	def test_deduplicate(self):
		test = self.data.duplicates
		trips = c.trips_from_data(test.trips)
		kept = tr.deduplicate_trips(trips)
		self.assertEqual(c.trip_ids(kept), test.kept)
		self.assertEqual(c.trip_ids(tr.deduplicate_trips(kept)), test.kept)

		ordered = tr.order_trips(trips, c.conf())
		self.assertEqual(c.trip_ids(ordered), test.kept)
		ordered = tr.order_trips(trips, c.conf(show_duplicate_trips=True))
		self.assertEqual(c.trip_ids(ordered), ['T1', 'T1-copy', 'T2', 'T3'])

	def test_deduplicate_timepoints(self):
		test = self.data.timepoint_duplicates
		trips = c.trips_from_data(test.trips)
		self.assertEqual(c.trip_ids(tr.deduplicate_trips(trips)), test.kept.all_stops)
		self.assertEqual(
			c.trip_ids(tr.deduplicate_trips(trips, show_only_timepoint=True)),
			test.kept.timepoints_only )

	def test_is_timepoint(self):
		StopTime = c.gt.t.input.StopTime
		self.assertTrue(tr.is_timepoint(StopTime('T1', 'A', 1, 60, 60)))
		self.assertTrue(tr.is_timepoint(StopTime('T1', 'A', 1, None, None, timepoint=1)))
		self.assertFalse(tr.is_timepoint(StopTime('T1', 'A', 1, 60, None)))
		self.assertFalse(tr.is_timepoint(StopTime('T1', 'A', 1, 60, 60, timepoint=0)))


class TripSelectTests(unittest.TestCase):

	@classmethod
	def setUpClass(cls):
		path_file = Path(__file__)
		cls.store = c.store_from_data(
			c.load_test_data(path_file.parent, path_file.stem, 'feed').feed )

	def timetable(self, **kws):
		kws = dict(dict(timetable_id='TT1', route_ids=['R1'], direction_id=0), **kws)
		return c.gt.t.input.Timetable(**kws)

	def select(self, timetable, service_ids, **conf_kws):
		calendars = self.store.get_calendars(service_id=service_ids)
		return tr.select_trips( self.store,
			timetable, service_ids, c.conf(**conf_kws), calendars )

	def test_select(self):
		trips, service_ids, frequencies, warnings = self.select(self.timetable(), ['weekday'])
		self.assertEqual(c.trip_ids(trips), ['T1', 'T2', 'T5'])
		self.assertEqual((service_ids, frequencies), (['weekday'], []))
		self.assertEqual(len(warnings), 1)
		self.assertIn('trip_id=T5', str(warnings[0]))
		self.assertEqual(warnings[0].timetable_id, 'TT1')

		trip = trips[0]
		self.assertEqual(trip.stop_ids(), ['P1', 'B']) # parent station
		self.assertEqual((trip.day_list, trip.route_short_name), ('Mon-Fri', '10'))
		self.assertEqual((trip.dts_first, trip.dts_last), (8*3600, 8*3600 + 10*60))
		self.assertEqual(trips[2].stoptimes, tuple())

		trips = self.select(self.timetable(), ['weekday'], use_parent_station=False)[0]
		self.assertEqual(trips[0].stop_ids(), ['A', 'B'])

	def test_select_scope(self):
		trips, service_ids = self.select(self.timetable(), ['weekday', 'weekend'])[:2]
		self.assertEqual(c.trip_ids(trips), ['T1', 'T2', 'T4', 'T5'])
		self.assertEqual(service_ids, ['weekday', 'weekend'])
		trips = self.select(self.timetable(direction_id=None), ['weekend'])[0]
		self.assertEqual(c.trip_ids(trips), ['T4'])
		trips = self.select(self.timetable(route_ids=['R1', 'R2']), ['weekday'])[0]
		self.assertEqual(c.trip_ids(trips), ['T1', 'T2', 'T5', 'T6'])

	def test_select_time_window(self):
		trips = self.select(self.timetable(start_time='09:00'), ['weekday'])[0]
		self.assertEqual(c.trip_ids(trips), ['T2', 'T5'])
		trips = self.select(self.timetable(end_time='10:00'), ['weekday'])[0]
		self.assertEqual(c.trip_ids(trips), ['T1', 'T5'])

	def test_select_no_trips(self):
		trips, service_ids, frequencies, warnings = self.select(
			self.timetable(route_ids=['R2'], direction_id=1), ['weekday'] )
		self.assertEqual((trips, service_ids), ([], []))
		self.assertEqual(len(warnings), 1)
		self.assertIn('No trips found', warnings[0].msg)

	def test_order_missing_stoptimes_last(self):
		trips = self.select(self.timetable(), ['weekday'])[0]
		for algo in 'common', 'beginning', 'end', 'first', 'last':
			trips_sorted = tr.order_trips(list(reversed(trips)), c.conf(sorting_algorithm=algo))
			self.assertEqual(c.trip_ids(trips_sorted), ['T1', 'T2', 'T5'], algo)
