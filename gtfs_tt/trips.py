import itertools as it, operator as op, functools as ft
import enum

import attr

from . import utils as u, types as t
from . import calendar as cal, frequencies as freqs, continuations as cont


log = u.get_logger('gt.trips')


def is_timepoint(st):
	if st.timepoint is None:
		return st.arrival_time is not None and st.departure_time is not None
	return st.timepoint == 1

def filter_timepoints(stoptimes, show_only_timepoint=False):
	if not show_only_timepoint: return list(stoptimes)
	return list(filter(is_timepoint, stoptimes))

def longest_trip_stoptimes(trips, show_only_timepoint=False):
	'Filtered stoptimes of the trip with most of them, first one of these on ties.'
	return u.max(
		(filter_timepoints(trip.stoptimes, show_only_timepoint) for trip in trips),
		key=len, default=None )

def find_common_stop_id(trips, show_only_timepoint=False):
	'''Find first stop of the longest trip that all trips pass with arrival time set.
		Returns None if there is no such stop.'''
	stoptimes = longest_trip_stoptimes(trips, show_only_timepoint)
	if not stoptimes: return
	for n, st in enumerate(stoptimes):
		if n == 0 and st.stop_id == stoptimes[-1].stop_id: continue # loop
		if st.arrival_time is None: continue
		if all(
				any( trip_st.stop_id == st.stop_id and trip_st.arrival_time is not None
					for trip_st in trip.stoptimes ) for trip in trips ):
			return st.stop_id

def dts_at_stop(trip, stop_id):
	'Departure (or arrival, if that is unset) time of trip at specified stop.'
	for st in trip.stoptimes:
		if st.stop_id != stop_id: continue
		return st.departure_time if st.departure_time is not None else st.arrival_time

missing_last = lambda dts: (dts is None, dts or 0)


### Sorting policies

class SortingAlgorithm(enum.Enum):
	common = 'common'
	beginning = 'beginning'
	end = 'end'
	first = 'first'
	last = 'last'

class TripSorter:

	def __init__(self, show_only_timepoint=False):
		self.show_only_timepoint = show_only_timepoint

	def sort_key(self, trips):
		raise NotImplementedError

	def sort(self, trips):
		'Stable sort, with trips missing sort-key times placed last.'
		return sorted(trips, key=self.sort_key(trips))

class BeginningSorter(TripSorter):
	def sort_key(self, trips):
		return lambda trip: (missing_last(trip.dts_first), missing_last(trip.dts_last))

class EndSorter(TripSorter):
	def sort_key(self, trips):
		return lambda trip: (missing_last(trip.dts_last), missing_last(trip.dts_first))

class StopSorter(TripSorter):
	'Sorts trips by time at one specific stop.'

	def sort_stop_id(self, trips):
		raise NotImplementedError

	def sort_key(self, trips):
		stop_id = self.sort_stop_id(trips)
		return lambda trip: missing_last(dts_at_stop(trip, stop_id))

class FirstSorter(StopSorter):
	def sort_stop_id(self, trips):
		stoptimes = longest_trip_stoptimes(trips, self.show_only_timepoint)
		return stoptimes[0].stop_id if stoptimes else None

class LastSorter(StopSorter):
	def sort_stop_id(self, trips):
		stoptimes = longest_trip_stoptimes(trips, self.show_only_timepoint)
		return stoptimes[-1].stop_id if stoptimes else None

class CommonSorter(StopSorter):

	def sort_stop_id(self, trips):
		return find_common_stop_id(trips, self.show_only_timepoint)

	def sort_key(self, trips):
		if self.sort_stop_id(trips) is None:
			return BeginningSorter(self.show_only_timepoint).sort_key(trips)
		return super(CommonSorter, self).sort_key(trips)

sorters = {
	SortingAlgorithm.common: CommonSorter,
	SortingAlgorithm.beginning: BeginningSorter,
	SortingAlgorithm.end: EndSorter,
	SortingAlgorithm.first: FirstSorter,
	SortingAlgorithm.last: LastSorter }

def get_sorter(algo, show_only_timepoint=False):
	try: algo = SortingAlgorithm(algo)
	except ValueError:
		raise t.public.ConfigurationError(
			'Unknown sorting_algorithm value: {!r}'.format(algo) ) from None
	return sorters[algo](show_only_timepoint)


def deduplicate_trips(trips, show_only_timepoint=False):
	'''Drop trips with same (stop, departure) sequence over
			filtered stoptimes as an already-kept trip that departs at same time
			from the comparator stop - common one, if any, or first stop of the trip.
		Order of trips is preserved.'''
	stop_id = find_common_stop_id(trips, show_only_timepoint)
	kept, seen = list(), dict()
	for trip in trips:
		dts = dts_at_stop(trip, stop_id) if stop_id else trip.dts_first
		sig = tuple( (st.stop_id, st.departure_time)
			for st in filter_timepoints(trip.stoptimes, show_only_timepoint) )
		sigs = seen.setdefault(dts, set())
		if sig in sigs: continue
		sigs.add(sig)
		kept.append(trip)
	return kept

def order_trips(trips, conf):
	'Sort trips according to conf.sorting_algorithm, then deduplicate them, if enabled.'
	trips = get_sorter(conf.sorting_algorithm, conf.show_only_timepoint).sort(trips)
	if not conf.show_duplicate_trips:
		trips = deduplicate_trips(trips, conf.show_only_timepoint)
	return trips


### Selection

def format_trip(trip, route, calendar, stoptimes, days_short=None):
	return t.public.FormattedTrip(
		trip_id=trip.trip_id, route_id=trip.route_id, service_id=trip.service_id,
		direction_id=trip.direction_id, block_id=trip.block_id,
		trip_headsign=trip.trip_headsign, trip_short_name=trip.trip_short_name,
		stoptimes=tuple(stoptimes), route_short_name=route and route.route_short_name,
		day_list=calendar and cal.format_days(cal.days_from_record(calendar), days_short) )

def remap_to_parent_stations(store, trips):
	stop_ids = set(st.stop_id for trip in trips for st in trip.stoptimes)
	parents = dict( (stop.stop_id, stop.parent_station)
		for stop in store.get_stops(stop_id=list(stop_ids)) if stop.parent_station )
	if not parents: return trips
	return list(
		attr.evolve(trip, stoptimes=tuple(
			attr.evolve(st, stop_id=parents[st.stop_id]) if st.stop_id in parents else st
			for st in trip.stoptimes ))
		for trip in trips )

def select_trips(store, timetable, service_ids, conf, calendars=None):
	'''Query and format all trips for timetable definition and (pre-resolved) service_ids.
		Returns (trips, service_ids, frequencies, warnings) tuple,
			where service_ids is narrowed down to ones used by found trips,
			and frequencies are used to generate trip instances from template trips.'''
	warnings, warn = list(), ft.partial(
		t.public.DataGapWarning.logged, log, timetable_id=timetable.timetable_id )
	query = dict(route_id=list(timetable.route_ids), service_id=list(service_ids))
	if timetable.direction_id is not None: query['direction_id'] = timetable.direction_id
	trips_raw = store.get_trips(**query)
	if not trips_raw:
		warnings.append(warn(
			'No trips found for route_id={}, direction_id={}, service_ids={}',
			'_'.join(timetable.route_ids), timetable.direction_id, list(service_ids) ))

	service_ids = list(u.uniq(trip.service_id for trip in trips_raw))
	routes = dict((r.route_id, r) for r in store.get_routes(route_id=list(timetable.route_ids)))
	calendars = dict((c.service_id, c) for c in (calendars or list()))
	frequencies = store.get_frequencies(trip_id=list(trip.trip_id for trip in trips_raw))
	trips, frequencies_used = list(), list()

	for trip in trips_raw:
		stoptimes = store.get_stoptimes(trip_id=trip.trip_id)
		if not stoptimes:
			warnings.append(warn( 'No stoptimes found for trip_id={}, route_id={}',
				trip.trip_id, '_'.join(timetable.route_ids) ))
		else:
			dts = stoptimes[0].arrival_time
			if dts is not None:
				if timetable.start_time is not None and dts < timetable.start_time: continue
				if timetable.end_time is not None and dts >= timetable.end_time: continue
		trip = format_trip( trip, routes.get(trip.route_id),
			calendars.get(trip.service_id), stoptimes, conf.days_short_strings )

		trip_instances = [trip]
		trip_frequencies = list(f for f in frequencies if f.trip_id == trip.trip_id)
		if trip_frequencies:
			trip_instances, freq_warnings = freqs.expand_trip(
				trip, trip_frequencies, timetable.timetable_id )
			warnings.extend(freq_warnings)
			frequencies_used.extend(trip_frequencies)

		for trip in trip_instances:
			if timetable.show_trip_continuation:
				trip, link_warnings = cont.link_trip(store, trip, service_ids)
				warnings.extend(link_warnings)
			trips.append(trip)

	if conf.use_parent_station: trips = remap_to_parent_stations(store, trips)
	return trips, service_ids, frequencies_used, warnings
