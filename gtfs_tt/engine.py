import itertools as it, operator as op, functools as ft
from collections import OrderedDict

import attr

from . import utils as u, types as t, calendar as cal, frequencies as freqs
from . import trips as tr, stops as st, notes as nt, pages


@u.attr_struct(vals_to_attrs=True)
class EngineConf:
	sorting_algorithm = 'common' # common, beginning, end, first, last
	show_only_timepoint = False
	show_arrival_on_difference = 0.2 # minutes, None to disable stop splitting
	use_parent_station = True
	allow_empty_timetables = False
	show_duplicate_trips = False
	show_stop_city = False
	default_orientation = 'vertical' # vertical, horizontal, hourly
	group_timetables_into_pages = True

	# Date range for timetables synthesized from calendars, YYYYMMDD
	start_date = None
	end_date = None

	date_format = '%b %d, %Y'
	time_format = '%H:%M'
	days_strings = tuple(cal.days_long_default)
	days_short_strings = tuple(cal.days_short_default)

	no_pickup_symbol = '**'
	no_pickup_text = 'No pickup available'
	no_dropoff_symbol = '‡'
	no_dropoff_text = 'No drop off available'
	request_pickup_symbol = '***'
	request_pickup_text = 'Request stop - call for pickup'
	request_dropoff_symbol = '†'
	request_dropoff_text = 'Must request drop off'
	interpolated_stop_symbol = '•'
	interpolated_stop_text = 'Estimated time of arrival'
	no_service_symbol = '-'
	no_service_text = 'No service at this stop'

orientations = 'vertical', 'horizontal', 'hourly'

def conf_update(conf, overrides):
	'Update EngineConf from a mapping, raising ConfigurationError for unknown keys.'
	for k, v in (overrides or dict()).items():
		if k.startswith('_') or not hasattr(conf, k):
			raise t.public.ConfigurationError(
				'Unrecognized engine conf option: {!r} (value: {!r})'.format(k, v) )
		setattr(conf, k, v)
	return conf

def conf_validate(conf):
	tr.get_sorter(conf.sorting_algorithm)
	if conf.default_orientation not in orientations:
		raise t.public.ConfigurationError(
			'Unknown default_orientation value: {!r}'.format(conf.default_orientation) )
	diff = conf.show_arrival_on_difference
	if diff is not None and (isinstance(diff, bool) or not isinstance(diff, (int, float)) or diff < 0):
		raise t.public.ConfigurationError(
			'Invalid show_arrival_on_difference value: {!r}'.format(diff) )
	for k in 'days_strings', 'days_short_strings':
		if len(getattr(conf, k)) != 7:
			raise t.public.ConfigurationError('{} must have 7 values'.format(k))
	pages.conf_date(conf.start_date, 'start_date')
	pages.conf_date(conf.end_date, 'end_date')


def timer(self_or_func, func=None, *args, **kws):
	'Calculation call wrapper for timer/progress logging.'
	if not func: return lambda s,*a,**k: s.timer_wrapper(self_or_func, s, *a, **k)
	return self_or_func.timer_wrapper(func, *args, **kws)


def filter_trips(trips, stop_ids):
	'''Merge adjacent stoptimes at the same stop (first arrival, last departure),
		drop ones at stops that are not in stop_ids, then trips with less than two of them left.'''
	stop_ids, trips_filtered = set(stop_ids), list()
	for trip in trips:
		stoptimes = list()
		for stoptime in trip.stoptimes:
			if stoptimes and stoptimes[-1].stop_id == stoptime.stop_id:
				stoptimes[-1] = attr.evolve(stoptimes[-1], departure_time=stoptime.departure_time)
				continue
			stoptimes.append(stoptime)
		stoptimes = list(s for s in stoptimes if s.stop_id in stop_ids)
		if len(stoptimes) <= 1: continue
		trips_filtered.append(attr.evolve(trip, stoptimes=tuple(stoptimes)))
	return trips_filtered

def timetable_label(timetable, routes, stops, direction_name=None):
	if timetable.timetable_label: return timetable.timetable_label
	label = 'Route {}'.format(u.format_list_for_display(route.name for route in routes))
	if stops:
		stop_first, stop_last = stops[0].stop_name, stops[-1].stop_name
		if stop_first == stop_last:
			if len(routes) == 1 and routes[0].route_long_name:
				label += ' - {}'.format(routes[0].route_long_name)
			label += ' - Loop'
		else: label += ' - {} to {}'.format(stop_first, stop_last)
	elif direction_name: label += ' to {}'.format(direction_name)
	return label

symbol_flags = OrderedDict([
	('no_pickup', 'no_pickup'), ('no_dropoff', 'no_dropoff'),
	('request_pickup', 'request_pickup'), ('request_dropoff', 'request_dropoff'),
	('interpolated', 'interpolated_stop'), ('skipped', 'no_service') ])

def symbol_legend(conf, symbols_used):
	'(symbol, text) tuples for StopTimeCell flags in symbols_used, in fixed order.'
	return tuple(
		(getattr(conf, '{}_symbol'.format(k)), getattr(conf, '{}_text'.format(k)))
		for flag, k in symbol_flags.items() if flag in symbols_used )


def generate_stats(page):
	'Counts of stops, trips, unique routes and unique service_ids on FormattedTimetablePage.'
	return OrderedDict([
		('stops', sum(len(tt.stops) for tt in page.timetables)),
		('trips', sum(len(tt.ordered_trips) for tt in page.timetables)),
		('routes', len(set(it.chain.from_iterable(tt.route_ids for tt in page.timetables)))),
		('calendars', len(set(it.chain.from_iterable(tt.service_ids for tt in page.timetables)))) ])


class TimetableEngine:

	def __init__(self, store, conf=None, timer_func=None):
		'''Creates timetable-building engine for (read-only) store.
			Raises ConfigurationError for invalid configuration values.'''
		self.store, self.conf, self.log = store, conf or EngineConf(), u.get_logger('gt.engine')
		self.timer_wrapper = timer_func if timer_func else lambda f,*a,**k: f(*a,**k)
		conf_validate(self.conf)

	def timetable_service_ids(self, timetable, calendars):
		if timetable.service_ids is not None: return list(timetable.service_ids)
		service_ids = list(c.service_id for c in calendars)
		if timetable.include_exceptions:
			start_date, end_date = (
				cal.validate_date(getattr(timetable, k), timetable.timetable_id, k)
				if getattr(timetable, k) else None for k in ['start_date', 'end_date'] )
			service_ids.extend(cal.calendar_dates_service_ids( self.store,
				start_date and u.date_format(start_date), end_date and u.date_format(end_date) ))
		return list(u.uniq(service_ids))

	@timer
	def format_timetable(self, timetable):
		'''Build FormattedTimetable from Timetable definition.
			Raises StructuralError if that is impossible due to broken data,
				all recoverable issues are returned in its "warnings" attribute.'''
		store, conf, warnings = self.store, self.conf, list()
		self.log.debug('Building timetable: {}', timetable.timetable_id)

		calendars = cal.calendars_for_timetable(store, timetable)
		service_ids = self.timetable_service_ids(timetable, calendars)
		trips, service_ids, frequencies, ws = tr.select_trips(
			store, timetable, service_ids, conf, calendars )
		warnings.extend(ws)
		trips = tr.order_trips(trips, conf)

		stop_order, stops = None, list()
		if trips:
			stop_order, ws = st.resolve_stop_order(store, timetable.timetable_id, trips, conf)
			warnings.extend(ws)
			stops = st.get_formatted_stops( store,
				timetable.timetable_id, stop_order.stop_ids, conf.show_stop_city )

		days = cal.days_from_record(timetable) or cal.days_or(
			cal.days_from_record(c) for c in calendars if c.service_id in service_ids )
		day_list = cal.format_days(days, conf.days_short_strings)
		dates_included, dates_excluded = cal.calendar_dates_for_timetable(
			store, timetable, service_ids, conf.date_format )

		routes = sorted( store.get_routes(route_id=list(timetable.route_ids)),
			key=lambda route: timetable.route_ids.index(route.route_id) )
		direction_name = timetable.direction_name or u.most_common(
			trip.trip_headsign for trip in trips if trip.trip_headsign )
		label = timetable_label(timetable, routes, stops, direction_name)

		notes, ws = nt.resolve_notes( store,
			timetable.timetable_id, timetable.route_ids, trips, stops )
		warnings.extend(ws)

		trips = filter_trips(trips, list(stop.stop_id for stop in stops))
		if not conf.show_duplicate_trips:
			trips = tr.deduplicate_trips(trips, conf.show_only_timepoint)
		stops, symbols_used = st.format_stops(stops, trips, conf)

		return t.public.FormattedTimetable(
			timetable_id=timetable.timetable_id, timetable_label=label,
			timetable_page_id=timetable.timetable_page_id,
			timetable_sequence=timetable.timetable_sequence,
			routes=tuple(routes), direction_id=timetable.direction_id,
			direction_name=direction_name,
			orientation=timetable.orientation or conf.default_orientation,
			service_ids=tuple(service_ids),
			start_date=timetable.start_date, end_date=timetable.end_date,
			days=days, day_list=day_list,
			day_list_long=cal.format_days_long(
				day_list, conf.days_short_strings, conf.days_strings ),
			service_notes=timetable.service_notes,
			calendar_dates_included=tuple(dates_included),
			calendar_dates_excluded=tuple(dates_excluded),
			frequencies=tuple( freqs.format_frequency(f, conf.time_format)
				for f in u.uniq(frequencies, key=attr.astuple) ),
			frequency_exact_times=freqs.exact_times(frequencies),
			ordered_trips=tuple(trips), stops=tuple(stops), stop_order=stop_order,
			notes=tuple(notes),
			has_continues_as_route=any(trip.continues_as for trip in trips),
			has_continues_from_route=any(trip.continues_from for trip in trips),
			symbols_used=frozenset(symbols_used),
			legend=symbol_legend(conf, symbols_used), warnings=tuple(warnings) )

	@timer
	def format_timetable_page(self, page):
		'Build FormattedTimetablePage from TimetablePage with timetable definitions.'
		conf = self.conf
		timetables = list(self.format_timetable(tt) for tt in page.timetables)
		warnings = tuple(it.chain.from_iterable(tt.warnings for tt in timetables))
		if not conf.allow_empty_timetables:
			for tt in timetables:
				if not tt.ordered_trips:
					self.log.debug('Dropping empty timetable: {}', tt.timetable_id)
			timetables = list(tt for tt in timetables if tt.ordered_trips)

		routes = list(u.uniq(
			it.chain.from_iterable(tt.routes for tt in timetables),
			key=op.attrgetter('route_id') ))
		days = cal.days_or(tt.days for tt in timetables)
		return t.public.FormattedTimetablePage(
			timetable_page_id=page.timetable_page_id,
			timetable_page_label=page.timetable_page_label
				or u.format_list_for_display(route.name for route in routes),
			filename=page.filename or '{}.html'.format(page.timetable_page_id),
			timetables=tuple(timetables),
			route_ids=tuple(route.route_id for route in routes),
			agency_ids=tuple(u.uniq(route.agency_id for route in routes if route.agency_id)),
			days=days, day_list=cal.format_days(days, conf.days_short_strings),
			day_lists=tuple(u.uniq(tt.day_list for tt in timetables)),
			warnings=warnings )

	def get_timetable_page(self, timetable_page_id):
		return pages.timetable_page_for_id(self.store, timetable_page_id, self.conf)

	def get_timetable_pages(self):
		return pages.get_timetable_pages(self.store, self.conf)

	def build_formatted_timetable_page(self, timetable_page_id):
		return self.format_timetable_page(self.get_timetable_page(timetable_page_id))


def build_formatted_timetable_page(store, timetable_page_id, conf=None, timer_func=None):
	engine = TimetableEngine(store, conf, timer_func=timer_func)
	return engine.build_formatted_timetable_page(timetable_page_id)
