import itertools as it, operator as op, functools as ft
import enum

from .. import utils as u


### Records returned by the Store

# All of these are immutable and built from GTFS CSV rows or plain mappings.
# Field converters normalize values, so that e.g. "" and None both mean "not set",
#  ids are always strings and times are int seconds after midnight.


def opt_str(v):
	if u.is_null_or_empty(v): return None
	return str(v)

def opt_int(v):
	if u.is_null_or_empty(v): return None
	return int(v)

def str_tuple(v):
	if u.is_null_or_empty(v): return tuple()
	return tuple(str(s) for s in u.as_list(v))

id_ib = lambda: u.attr_init(converter=str)
str_ib = lambda: u.attr_init(None, converter=opt_str)
int_ib = lambda default=None: u.attr_init(default, converter=opt_int)
dts_ib = lambda: u.attr_init(None, converter=u.dts_parse)


weekday_columns = [ 'monday', 'tuesday',
	'wednesday', 'thursday', 'friday', 'saturday', 'sunday' ]

class CalendarException(enum.Enum):
	added, removed = '1', '2'

	@classmethod
	def parse(cls, v):
		return v if isinstance(v, cls) else cls(str(v).strip())


@u.attr_struct(frozen=True)
class Agency:
	agency_id = str_ib()
	agency_name = str_ib()
	agency_url = str_ib()
	agency_timezone = str_ib()

@u.attr_struct(frozen=True)
class Route:
	route_id = id_ib()
	agency_id = str_ib()
	route_short_name = str_ib()
	route_long_name = str_ib()
	route_type = int_ib()
	route_color = str_ib()
	route_text_color = str_ib()

	@property
	def name(self):
		return self.route_short_name or self.route_long_name or self.route_id

@u.attr_struct(frozen=True)
class Stop:
	stop_id = id_ib()
	stop_name = str_ib()
	stop_code = str_ib()
	stop_lat = str_ib()
	stop_lon = str_ib()
	location_type = int_ib()
	parent_station = str_ib()

@u.attr_struct(frozen=True)
class StopAttributes:
	stop_id = id_ib()
	stop_city = str_ib()

@u.attr_struct(frozen=True)
class Trip:
	trip_id = id_ib()
	route_id = id_ib()
	service_id = id_ib()
	trip_headsign = str_ib()
	trip_short_name = str_ib()
	direction_id = int_ib()
	block_id = str_ib()
	shape_id = str_ib()

@u.attr_struct(frozen=True)
class StopTime:
	trip_id = id_ib()
	stop_id = id_ib()
	stop_sequence = u.attr_init(converter=int)
	arrival_time = dts_ib()
	departure_time = dts_ib()
	stop_headsign = str_ib()
	pickup_type = int_ib()
	drop_off_type = int_ib()
	timepoint = int_ib()

@u.attr_struct(frozen=True)
class Calendar:
	service_id = id_ib()
	start_date = id_ib()
	end_date = id_ib()
	monday = int_ib(0)
	tuesday = int_ib(0)
	wednesday = int_ib(0)
	thursday = int_ib(0)
	friday = int_ib(0)
	saturday = int_ib(0)
	sunday = int_ib(0)

@u.attr_struct(frozen=True)
class CalendarDate:
	service_id = id_ib()
	date = id_ib()
	exception_type = u.attr_init(converter=CalendarException.parse)

@u.attr_struct(frozen=True)
class Frequency:
	trip_id = id_ib()
	start_time = u.attr_init(converter=u.dts_parse)
	end_time = u.attr_init(converter=u.dts_parse)
	headway_secs = u.attr_init(converter=int)
	exact_times = int_ib(0)


@u.attr_struct(frozen=True)
class Timetable:
	'''Timetable definition, either from timetables.txt
		(rows with same timetable_id merged into one) or synthesized from routes/calendars.'''
	timetable_id = id_ib()
	route_ids = u.attr_init(tuple, converter=str_tuple)
	direction_id = int_ib()
	start_date = str_ib()
	end_date = str_ib()
	monday = int_ib(0)
	tuesday = int_ib(0)
	wednesday = int_ib(0)
	thursday = int_ib(0)
	friday = int_ib(0)
	saturday = int_ib(0)
	sunday = int_ib(0)
	start_time = dts_ib()
	end_time = dts_ib()
	timetable_label = str_ib()
	service_notes = str_ib()
	orientation = str_ib()
	timetable_page_id = str_ib()
	timetable_sequence = int_ib()
	direction_name = str_ib()
	include_exceptions = int_ib(0)
	show_trip_continuation = int_ib(0)
	# Only set for synthesized timetables, otherwise derived from calendars
	service_ids = u.attr_init(None, converter=lambda v: v if v is None else str_tuple(v))

@u.attr_struct(frozen=True)
class TimetablePage:
	timetable_page_id = id_ib()
	timetable_page_label = str_ib()
	filename = str_ib()

@u.attr_struct(frozen=True)
class TimetableStopOrder:
	timetable_id = id_ib()
	stop_id = id_ib()
	stop_sequence = u.attr_init(converter=int)

@u.attr_struct(frozen=True)
class Note:
	note_id = id_ib()
	symbol = str_ib()
	note = str_ib()

@u.attr_struct(frozen=True)
class NoteReference:
	note_id = id_ib()
	timetable_id = str_ib()
	route_id = str_ib()
	trip_id = str_ib()
	stop_id = str_ib()
	stop_sequence = int_ib()
	show_on_stoptime = int_ib(0)
