import itertools as it, operator as op, functools as ft
import graphlib

import attr

from . import utils as u, types as t, trips as tr


log = u.get_logger('gt.stops')


def timepoint_stop_ids(trips):
	'Stops that are timepoints in any of the trips.'
	return set(st.stop_id for trip in trips for st in trip.stoptimes if tr.is_timepoint(st))

def toposort_stop_ids(stop_id_lists):
	'''Topologically sort stops from per-trip stop sequences.
		Raises graphlib.CycleError if these are inconsistent.'''
	sorter = graphlib.TopologicalSorter()
	for stop_ids in stop_id_lists:
		for a, b in zip(stop_ids, stop_ids[1:]):
			if a != b: sorter.add(b, a)
	return list(sorter.static_order())

def duplicate_split_stops(stop_ids, trips, threshold):
	'''Duplicate stop_ids where any trip waits for longer than threshold minutes,
		so that arrival and departure can be displayed separately.
		First/last stops and ones that already have an adjacent duplicate are skipped.'''
	stop_ids = list(stop_ids)
	if threshold is None: return stop_ids
	for trip in trips:
		for st in trip.stoptimes:
			if st.arrival_time is None or st.departure_time is None: continue
			if (st.departure_time - st.arrival_time) / 60 <= threshold: continue
			try: n = stop_ids.index(st.stop_id)
			except ValueError: continue
			if n == 0 or n == len(stop_ids) - 1: continue
			if st.stop_id in (stop_ids[n-1], stop_ids[n+1]): continue
			stop_ids.insert(n, st.stop_id)
	return stop_ids

def resolve_stop_order(store, timetable_id, trips, conf):
	'''Return (StopOrder, warnings) for timetable_id and its ordered trips.
		Uses manual order from timetable_stop_order records if there is one,
			topological sort of trip stop sequences otherwise,
			falling back to stops of the longest trip if latter has cycles.'''
	warnings, warn = list(), ft.partial(
		t.public.DataGapWarning.logged, log, timetable_id=timetable_id )

	stop_orders = store.get_timetable_stop_orders(timetable_id=timetable_id)
	if stop_orders:
		return t.public.StopOrder(tuple(so.stop_id for so in stop_orders), 'manual'), warnings

	tp_ids = timepoint_stop_ids(trips) if conf.show_only_timepoint else None
	stop_id_lists = list(
		list(st.stop_id for st in trip.stoptimes if tp_ids is None or st.stop_id in tp_ids)
		for trip in trips )
	has_edges = any(a != b for ids in stop_id_lists for a, b in zip(ids, ids[1:]))
	if conf.show_only_timepoint and not has_edges:
		warnings.append(warn( 'Trips have no timepoint stoptimes to sort'
			' stops by, try setting show_only_timepoint option to false' ))

	try:
		stop_ids, method, missing = toposort_stop_ids(stop_id_lists), 'toposort', list()
	except graphlib.CycleError as err:
		log.debug('Cycle in stop sequences of timetable {}: {}', timetable_id, err.args[1])
		stoptimes = tr.longest_trip_stoptimes(trips, conf.show_only_timepoint) or list()
		stop_ids, method = list(st.stop_id for st in stoptimes), 'longest-trip'
		missing = list(u.uniq(
			st.stop_id for trip in trips for st in trip.stoptimes if st.stop_id not in stop_ids ))
		if missing:
			warnings.append(warn( 'Stops are unable to be topologically sorted and there'
				' is no manual stop order, using stop order from the trip with most stoptimes,'
				' which does not include stop_ids {}', u.format_list_for_display(missing) ))

	stop_ids = duplicate_split_stops(stop_ids, trips, conf.show_arrival_on_difference)
	return t.public.StopOrder(tuple(stop_ids), method, tuple(missing)), warnings


def get_formatted_stops(store, timetable_id, stop_ids, show_stop_city=False):
	'''FormattedStop records (without trip cells) for ordered stop_ids.
		Duplicated stop ids are marked as arrival/departure pairs.'''
	stop_map = dict((stop.stop_id, stop) for stop in store.get_stops(stop_id=list(stop_ids)))
	city_map = dict() if not show_stop_city else dict(
		(sa.stop_id, sa.stop_city) for sa in store.get_stop_attributes(stop_id=list(stop_ids)) )
	stops = list()
	for n, stop_id in enumerate(stop_ids):
		stop = stop_map.get(stop_id)
		if not stop:
			raise t.public.StructuralError(
				'No stop found for stop_id={} in timetable_id={}'.format(stop_id, timetable_id) )
		stop_type = None
		if n < len(stop_ids) - 1 and stop_id == stop_ids[n+1]: stop_type = 'arrival'
		elif n > 0 and stop_id == stop_ids[n-1]: stop_type = 'departure'
		stops.append(t.public.FormattedStop(
			stop_id=stop.stop_id, stop_name=stop.stop_name, stop_code=stop.stop_code,
			parent_station=stop.parent_station, stop_city=city_map.get(stop_id), type=stop_type ))
	return stops


def format_cell(trip_id, stop_id, st, cell_type, conf):
	'StopTimeCell for trip at stop, with st=None for stops that trip does not serve.'
	if st is None:
		return t.public.StopTimeCell( trip_id, stop_id,
			formatted_time=conf.no_service_symbol, skipped=True )
	dts = st.departure_time if cell_type == 'departure' else st.arrival_time
	if dts is None: dts = st.arrival_time if cell_type == 'departure' else st.departure_time
	return t.public.StopTimeCell(
		trip_id, stop_id, type=cell_type, stoptime=st,
		formatted_time=u.dts_format_display(dts, conf.time_format),
		interpolated=st.timepoint == 0 or st.departure_time is None,
		request_pickup=st.pickup_type in (2, 3), request_dropoff=st.drop_off_type in (2, 3),
		no_pickup=st.pickup_type == 1, no_dropoff=st.drop_off_type == 1 )

def format_stops(stops, trips, conf):
	'''Fill FormattedStop.trips with StopTimeCell for each of the ordered trips.
		Returns (stops, symbols_used), with latter being a set
			of StopTimeCell flags that are set in any of the cells.'''
	cells = list(list() for stop in stops)
	for trip in trips:
		trip_cells, n_stop = dict(), 0
		for n_st, st in enumerate(trip.stoptimes):
			for n in range(n_stop, len(stops)):
				if stops[n].stop_id == st.stop_id: break
			else: continue
			n_stop = n
			if stops[n].type == 'arrival':
				if n_st < len(trip.stoptimes) - 1:
					trip_cells[n+1] = format_cell(trip.trip_id, st.stop_id, st, 'departure', conf)
				if n_st == 0: continue
			trip_cells[n] = format_cell(trip.trip_id, st.stop_id, st, stops[n].type, conf)
		for n, stop in enumerate(stops):
			cell = trip_cells.get(n)
			if not cell: cell = format_cell(trip.trip_id, stop.stop_id, None, None, conf)
			cells[n].append(cell)

	symbols_used = set()
	for cell in it.chain.from_iterable(cells):
		symbols_used.update(k for k in [ 'interpolated', 'request_pickup',
			'request_dropoff', 'no_pickup', 'no_dropoff', 'skipped' ] if getattr(cell, k))
	stops = list(attr.evolve(stop, trips=tuple(cs)) for stop, cs in zip(stops, cells))
	return stops, symbols_used
