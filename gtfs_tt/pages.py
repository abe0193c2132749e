import itertools as it, operator as op, functools as ft
from collections import OrderedDict

import attr

from . import utils as u, types as t, calendar as cal


log = u.get_logger('gt.pages')


def timetable_id_for(route_id, calendar_code, direction_id=None):
	'Synthesized timetable id, e.g. "R1|1111100|0", parsed back by parse_timetable_id().'
	parts = [route_id, calendar_code]
	if direction_id is not None: parts.append(str(direction_id))
	return '|'.join(parts)

def parse_timetable_id(timetable_id):
	'''Parse "route_id|calendar_code[|direction_id]" into (route_id, calendar_code, direction_id).
		calendar_code can also be a service_id of calendar_dates-only service.'''
	parts = timetable_id.split('|')
	calendar_code = direction_id = None
	if len(parts) > 2:
		direction_id = parts.pop()
		try: direction_id = int(direction_id)
		except ValueError:
			raise t.public.StructuralError(
				'Invalid direction_id in timetable_page_id={}'.format(timetable_id) ) from None
		calendar_code = parts.pop()
	elif len(parts) > 1: calendar_code = parts.pop()
	return '|'.join(parts), calendar_code, direction_id


def conf_date(value, name):
	if value is None: return
	if not isinstance(value, str): value = u.date_format(value)
	try: return u.date_format(u.date_parse(value.replace('-', '')))
	except ValueError:
		raise t.public.ConfigurationError(
			'Invalid {} configuration value: {!r}'.format(name, value) ) from None

def calendars_from_conf(store, conf):
	'''Return (calendars, calendar_dates) to build timetables from,
		with latter being added-service dates for services not in calendars.'''
	start_date, end_date = conf_date(conf.start_date, 'start_date'), conf_date(conf.end_date, 'end_date')
	calendars = list( c for c in store.get_calendars()
		if not ((end_date and c.start_date > end_date) or (start_date and c.end_date < start_date)) )
	service_ids = set(c.service_id for c in calendars)
	calendar_dates = list( cd for cd in
		store.get_calendar_dates(exception_type=cal.CalendarException.added)
		if cd.service_id not in service_ids )
	return calendars, calendar_dates


def create_timetable(route, direction_id, trip_headsign, calendars=None, calendar_dates=None):
	'Timetable definition for route/direction and either calendars or calendar_dates.'
	calendars, calendar_dates = calendars or list(), calendar_dates or list()
	service_ids = list(u.uniq(
		rec.service_id for rec in it.chain(calendars, calendar_dates) ))
	days, start_date, end_date = 0, None, None
	if calendars:
		days = cal.days_or(map(cal.days_from_record, calendars))
		start_date = min(c.start_date for c in calendars)
		end_date = max(c.end_date for c in calendars)
		calendar_code = cal.days_code(days)
	else: calendar_code = service_ids[0]
	return t.input.Timetable(
		timetable_id=timetable_id_for(route.route_id, calendar_code, direction_id),
		route_ids=[route.route_id], direction_id=direction_id, direction_name=trip_headsign,
		start_date=start_date, end_date=end_date,
		include_exceptions=int(bool(calendar_dates)),
		service_ids=service_ids, **cal.days_to_fields(days) )

def route_timetables(store, route, calendars, calendar_dates):
	'''Timetables for each direction of the route and each
		group of calendars with same days (or calendar_dates service).'''
	trips = store.get_trips(route_id=route.route_id)
	directions = sorted( u.uniq(trips, key=op.attrgetter('direction_id')),
		key=lambda trip: (trip.direction_id is None, trip.direction_id or 0) )
	calendar_groups = sorted( cal.group_calendars_by_days(calendars).items(),
		key=op.itemgetter(0), reverse=True )
	calendar_date_groups = OrderedDict()
	for cd in calendar_dates:
		calendar_date_groups.setdefault(cd.service_id, list()).append(cd)

	timetables = list()
	for trip_dir in directions:
		dir_service_ids = set( trip.service_id
			for trip in trips if trip.direction_id == trip_dir.direction_id )
		for code, cal_group in calendar_groups:
			if not dir_service_ids.intersection(c.service_id for c in cal_group): continue
			timetables.append(create_timetable( route,
				trip_dir.direction_id, trip_dir.trip_headsign, calendars=cal_group ))
		for service_id, cd_group in calendar_date_groups.items():
			if service_id not in dir_service_ids: continue
			timetables.append(create_timetable( route,
				trip_dir.direction_id, trip_dir.trip_headsign, calendar_dates=cd_group ))
	return timetables

def route_page_id(route):
	return 'route_{}'.format(route.route_short_name or route.route_long_name or route.route_id)


def create_timetable_page(page_id, timetables, page_def=None):
	label = filename = None
	if page_def: label, filename = page_def.timetable_page_label, page_def.filename
	return t.public.TimetablePage(page_id, label, filename, tuple(timetables))

def timetable_page_for_id(store, page_id, conf):
	'''Resolve timetable_page_id to TimetablePage with timetable definitions.
		Tries, in order: timetable_pages, timetables, "route_<name>" ids
			and "route_id|calendar_code[|direction_id]" ids for feeds without timetables.'''
	page_defs = store.get_timetable_pages(timetable_page_id=page_id)
	if len(page_defs) > 1:
		raise t.public.StructuralError(
			'Multiple timetable_pages found for timetable_page_id={}'.format(page_id) )
	timetables = store.get_timetables()

	if page_defs:
		page_timetables = sorted(
			(tt for tt in timetables if tt.timetable_page_id == page_id),
			key=lambda tt: (tt.timetable_sequence is None, tt.timetable_sequence or 0) )
		return create_timetable_page(page_id, page_timetables, page_defs[0])

	if timetables:
		page_timetables = list(tt for tt in timetables if tt.timetable_id == page_id)
		if not page_timetables:
			raise t.public.StructuralError(
				'No timetable found for timetable_page_id={}'.format(page_id) )
		return create_timetable_page(page_id, page_timetables[:1])

	calendars, calendar_dates = calendars_from_conf(store, conf)
	if page_id.startswith('route_'):
		routes = list(route for route in store.get_routes() if route_page_id(route) == page_id)
		if routes:
			return create_timetable_page( page_id,
				route_timetables(store, routes[0], calendars, calendar_dates) )

	route_id, calendar_code, direction_id = parse_timetable_id(page_id)
	routes = store.get_routes(route_id=route_id)
	trips = store.get_trips(route_id=route_id, **(
		dict(direction_id=direction_id) if direction_id is not None else dict() ))
	if not routes or not trips:
		raise t.public.StructuralError(
			'No trips found for timetable_page_id={} route_id={} direction_id={}'
			.format(page_id, route_id, direction_id) )
	if calendar_code is None:
		page_timetables = route_timetables(store, routes[0], calendars, calendar_dates)
		page_timetables = list( tt for tt in page_timetables
			if direction_id is None or tt.direction_id == direction_id )
	else:
		if cal.is_days_code(calendar_code):
			days = cal.days_from_code(calendar_code)
			svc = dict(calendars=list(c for c in calendars if cal.days_from_record(c) == days))
		else:
			svc = dict(calendar_dates=store.get_calendar_dates(
				service_id=calendar_code, exception_type=cal.CalendarException.added ))
		if not any(svc.values()):
			raise t.public.StructuralError( 'No calendars found for'
				' timetable_page_id={} calendar_code={}'.format(page_id, calendar_code) )
		page_timetables = [create_timetable(
			routes[0], direction_id, trips[0].trip_headsign, **svc )]
	return create_timetable_page(page_id, page_timetables)


def get_timetable_pages(store, conf):
	'''All TimetablePages defined for the feed.
		Raises ConfigurationError if nothing can be built from the data.'''
	if not store.get_agencies():
		raise t.public.ConfigurationError('No agencies found in the data')
	timetables = store.get_timetables()

	if not timetables:
		calendars, calendar_dates = calendars_from_conf(store, conf)
		pages = list()
		for route in store.get_routes():
			route_tts = route_timetables(store, route, calendars, calendar_dates)
			if conf.group_timetables_into_pages:
				pages.append(create_timetable_page(route_page_id(route), route_tts))
			else:
				pages.extend(create_timetable_page(tt.timetable_id, [tt]) for tt in route_tts)

	else:
		page_defs = sorted(store.get_timetable_pages(), key=op.attrgetter('timetable_page_id'))
		if not page_defs:
			pages = list(create_timetable_page(tt.timetable_id, [tt]) for tt in timetables)
		else:
			pages = list(
				create_timetable_page( page_def.timetable_page_id, sorted(
					(tt for tt in timetables if tt.timetable_page_id == page_def.timetable_page_id),
					key=lambda tt: (tt.timetable_sequence is None, tt.timetable_sequence or 0) ),
					page_def )
				for page_def in page_defs )

	if not any(page.timetables for page in pages):
		raise t.public.ConfigurationError('No timetables can be resolved from the data')
	return pages
