import itertools as it, operator as op, functools as ft

from .. import utils as u


class TimetableError(Exception): pass

class StructuralError(TimetableError):
	'Data makes one timetable (or page) meaningless, aborts building it.'

class ConfigurationError(TimetableError):
	'Nothing can be built with specified data/configuration, aborts the whole run.'


@u.attr_struct(frozen=True)
class DataGapWarning:
	'Recoverable data issue, returned alongside results and collected into timetable warnings.'
	msg = u.attr_init()
	timetable_id = u.attr_init(None)

	@classmethod
	def logged(cls, log, tpl, *args, timetable_id=None, **kws):
		w = cls(tpl.format(*args, **kws), timetable_id)
		log.info('{}', w)
		return w

	def __str__(self):
		if not self.timetable_id: return self.msg
		return 'Timetable {}: {}'.format(self.timetable_id, self.msg)


### Timetable building blocks

@u.attr_struct(frozen=True)
class TripContinuation:
	keys = 'trip_id route stop_id'

@u.attr_struct(frozen=True)
class FormattedTrip:
	trip_id = u.attr_init()
	route_id = u.attr_init()
	service_id = u.attr_init()
	direction_id = u.attr_init(None)
	block_id = u.attr_init(None)
	trip_headsign = u.attr_init(None)
	trip_short_name = u.attr_init(None)
	stoptimes = u.attr_init(tuple)
	route_short_name = u.attr_init(None)
	day_list = u.attr_init(None)
	continues_from = u.attr_init(None) # TripContinuation
	continues_as = u.attr_init(None)
	template_trip_id = u.attr_init(None) # for frequency-based trip instances
	frequency = u.attr_init(None)

	@property
	def dts_first(self):
		if not self.stoptimes: return
		st = self.stoptimes[0]
		return st.departure_time if st.departure_time is not None else st.arrival_time

	@property
	def dts_last(self):
		if not self.stoptimes: return
		st = self.stoptimes[-1]
		return st.arrival_time if st.arrival_time is not None else st.departure_time

	def stop_ids(self): return list(st.stop_id for st in self.stoptimes)

@u.attr_struct(frozen=True)
class StopTimeCell:
	'Value in one timetable grid cell - time of trip at a stop (or lack thereof).'
	trip_id = u.attr_init()
	stop_id = u.attr_init()
	type = u.attr_init(None) # arrival/departure for split stops
	stoptime = u.attr_init(None)
	formatted_time = u.attr_init('')
	interpolated = u.attr_init(False)
	request_pickup = u.attr_init(False)
	request_dropoff = u.attr_init(False)
	no_pickup = u.attr_init(False)
	no_dropoff = u.attr_init(False)
	skipped = u.attr_init(False)

	@property
	def classes(self):
		return list(k.replace('_', '-') for k in [ 'interpolated', 'request_pickup',
			'request_dropoff', 'no_pickup', 'no_dropoff', 'skipped' ] if getattr(self, k))

@u.attr_struct(frozen=True)
class FormattedStop:
	stop_id = u.attr_init()
	stop_name = u.attr_init(None)
	stop_code = u.attr_init(None)
	parent_station = u.attr_init(None)
	stop_city = u.attr_init(None)
	type = u.attr_init(None) # None, "arrival" or "departure"
	trips = u.attr_init(tuple) # StopTimeCell for each of FormattedTimetable.ordered_trips

@u.attr_struct(frozen=True)
class StopOrder:
	stop_ids = u.attr_init(tuple)
	method = u.attr_init('toposort') # manual, toposort, longest-trip
	missing_stop_ids = u.attr_init(tuple) # stops omitted by longest-trip fallback

@u.attr_struct(frozen=True)
class FormattedFrequency:
	keys = 'start_formatted_time end_formatted_time headway_min exact_times'

@u.attr_struct(frozen=True)
class FormattedNote:
	note_id = u.attr_init()
	symbol = u.attr_init()
	note = u.attr_init(None)
	references = u.attr_init(tuple)


@u.attr_struct(frozen=True)
class FormattedTimetable:
	timetable_id = u.attr_init()
	timetable_label = u.attr_init(None)
	timetable_page_id = u.attr_init(None)
	timetable_sequence = u.attr_init(None)
	routes = u.attr_init(tuple)
	direction_id = u.attr_init(None)
	direction_name = u.attr_init(None)
	orientation = u.attr_init(None)
	service_ids = u.attr_init(tuple)
	start_date = u.attr_init(None)
	end_date = u.attr_init(None)
	days = u.attr_init(0) # bitmask, see calendar.days_*
	day_list = u.attr_init(None)
	day_list_long = u.attr_init(None)
	service_notes = u.attr_init(None)
	calendar_dates_included = u.attr_init(tuple)
	calendar_dates_excluded = u.attr_init(tuple)
	frequencies = u.attr_init(tuple)
	frequency_exact_times = u.attr_init(False)
	ordered_trips = u.attr_init(tuple)
	stops = u.attr_init(tuple)
	stop_order = u.attr_init(None)
	notes = u.attr_init(tuple)
	has_continues_as_route = u.attr_init(False)
	has_continues_from_route = u.attr_init(False)
	symbols_used = u.attr_init(frozenset)
	legend = u.attr_init(tuple) # (symbol, text) for each of symbols_used
	warnings = u.attr_init(tuple)

	@property
	def route_ids(self): return list(route.route_id for route in self.routes)


@u.attr_struct(frozen=True)
class TimetablePage:
	'Page with timetable definitions, before any formatting.'
	timetable_page_id = u.attr_init()
	timetable_page_label = u.attr_init(None)
	filename = u.attr_init(None)
	timetables = u.attr_init(tuple)

@u.attr_struct(frozen=True)
class FormattedTimetablePage:
	timetable_page_id = u.attr_init()
	timetable_page_label = u.attr_init(None)
	filename = u.attr_init(None)
	timetables = u.attr_init(tuple)
	route_ids = u.attr_init(tuple)
	agency_ids = u.attr_init(tuple)
	days = u.attr_init(0)
	day_list = u.attr_init(None)
	day_lists = u.attr_init(tuple)
	warnings = u.attr_init(tuple)
