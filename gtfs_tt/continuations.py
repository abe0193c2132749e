import itertools as it, operator as op, functools as ft
from collections import namedtuple

import attr

from . import utils as u, types as t


log = u.get_logger('gt.continuations')

MAX_WINDOW = 3600 # max wait at the stop between linked trips, seconds

BlockTrip = namedtuple('BlockTrip', 'trip_id route_id dts_dep stop_id_first dts_arr stop_id_last')

dts_dep = lambda st: st.departure_time if st.departure_time is not None else st.arrival_time
dts_arr = lambda st: st.arrival_time if st.arrival_time is not None else st.departure_time


def station_stop_ids(store, stop_id):
	'''Set of stop_ids at the same physical location as specified one:
		parent station with all its stops for platforms, station with all its stops for stations.'''
	stops = store.get_stops(stop_id=stop_id)
	if not stops:
		raise t.public.StructuralError('No stop found for stop_id={}'.format(stop_id))
	station_id = stops[0].parent_station or stop_id
	return set([station_id]).union(
		stop.stop_id for stop in store.get_stops(parent_station=station_id) )

def get_block_trips(store, trip, service_ids):
	'''Other trips on the same block, with first/last stop times and ids,
		sorted by their first departure time. Returns (block_trips, warnings) tuple.'''
	block_trips, warnings = list(), list()
	for block_trip in store.get_trips(block_id=trip.block_id, service_id=list(service_ids)):
		if block_trip.trip_id in (trip.trip_id, trip.template_trip_id): continue
		stoptimes = store.get_stoptimes(trip_id=block_trip.trip_id)
		if not stoptimes:
			warnings.append(t.public.DataGapWarning.logged( log,
				'No stoptimes found for trip_id={} on block_id={}',
				block_trip.trip_id, trip.block_id ))
			continue
		st_first, st_last = stoptimes[0], stoptimes[-1]
		block_trips.append(BlockTrip( block_trip.trip_id, block_trip.route_id,
			dts_dep(st_first), st_first.stop_id, dts_arr(st_last), st_last.stop_id ))
	block_trips.sort(key=lambda bt: (bt.dts_dep is None, bt.dts_dep or 0))
	return block_trips, warnings

def trip_continuation(store, block_trip, stop_id):
	routes = store.get_routes(route_id=block_trip.route_id)
	return t.public.TripContinuation(block_trip.trip_id, routes[0] if routes else None, stop_id)

def link_trip(store, trip, service_ids):
	'''Find trips on the same block that this one continues from or as.
		These must be on a different route, starting/ending at
			the same station within MAX_WINDOW seconds from this trip.
		Returns (trip, warnings), with continues_from/continues_as set on new trip, if any.'''
	if not trip.block_id or not trip.stoptimes: return trip, list()
	st_first, st_last = trip.stoptimes[0], trip.stoptimes[-1]
	dts_first, dts_last = dts_dep(st_first), dts_arr(st_last)
	if dts_first is None or dts_last is None: return trip, list()
	block_trips, warnings = get_block_trips(store, trip, service_ids)
	links = dict()

	trip_prev = None
	for bt in block_trips:
		if bt.dts_arr is not None and bt.dts_arr <= dts_first: trip_prev = bt
	if ( trip_prev and trip_prev.route_id != trip.route_id
			and trip_prev.dts_arr >= dts_first - MAX_WINDOW
			and trip_prev.stop_id_last in station_stop_ids(store, st_first.stop_id) ):
		links['continues_from'] = trip_continuation(store, trip_prev, trip_prev.stop_id_last)

	for trip_next in block_trips:
		if trip_next.dts_dep is not None and trip_next.dts_dep >= dts_last: break
	else: trip_next = None
	if ( trip_next and trip_next.route_id != trip.route_id
			and trip_next.dts_dep <= dts_last + MAX_WINDOW
			and trip_next.stop_id_first in station_stop_ids(store, st_last.stop_id) ):
		links['continues_as'] = trip_continuation(store, trip_next, trip_next.stop_id_first)

	if links: trip = attr.evolve(trip, **links)
	return trip, warnings
