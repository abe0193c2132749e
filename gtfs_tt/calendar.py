import itertools as it, operator as op, functools as ft
from collections import OrderedDict

from . import utils as u, types as t


log = u.get_logger('gt.calendar')

weekday_columns = t.input.weekday_columns
CalendarException = t.input.CalendarException

days_short_default = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
days_long_default = [ 'Monday', 'Tuesday',
	'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday' ]


### Day bitmasks - bit 0 is monday, bit 6 is sunday

def days_from_record(rec):
	'Bitmask from monday...sunday 0/1 fields of Calendar or Timetable record.'
	return sum((1 << n) for n, k in enumerate(weekday_columns) if getattr(rec, k))

def days_to_fields(days):
	return OrderedDict((k, int(bool(days & (1 << n)))) for n, k in enumerate(weekday_columns))

def days_code(days):
	'Calendar code string, e.g. "1111100" for weekdays-only service.'
	return ''.join(str(int(bool(days & (1 << n)))) for n in range(7))

def is_days_code(code):
	return isinstance(code, str) and len(code) == 7 and not code.strip('01')

def days_from_code(code):
	if not is_days_code(code): raise ValueError('Invalid calendar code: {!r}'.format(code))
	return sum((1 << n) for n, c in enumerate(code) if c == '1')

def days_or(days_iter):
	return ft.reduce(op.or_, days_iter, 0)


def format_days(days, days_short=None):
	'Short day-list label, e.g. "Mon-Fri", "Mon-Wed, Fri" or "Sat-Sun".'
	days_short = days_short or days_short_default
	ranges, n = list(), 0
	while n < 7:
		if not days & (1 << n):
			n += 1
			continue
		n_end = n
		while n_end < 6 and days & (1 << (n_end + 1)): n_end += 1
		if n_end > n: ranges.append('{}-{}'.format(days_short[n], days_short[n_end]))
		else: ranges.append(days_short[n])
		n = n_end + 1
	return ', '.join(ranges) or 'No regular service days'

def format_days_long(day_list, days_short=None, days_long=None):
	days_short, days_long = days_short or days_short_default, days_long or days_long_default
	day_map = dict(zip(days_short, days_long))
	return ', '.join(
		'-'.join(day_map.get(d, d) for d in chunk.split('-'))
		for chunk in day_list.split(', ') )


### Dates and calendars

def validate_date(date_str, timetable_id=None, field='date'):
	'''Parse YYYYMMDD date value for timetable definition,
		raising StructuralError for anything that is not a valid date.'''
	try: return u.date_parse(date_str)
	except ValueError:
		raise t.public.StructuralError(
			'Invalid {}={!r} for timetable_id={}'.format(field, date_str, timetable_id) ) from None

def calendars_for_timetable(store, timetable):
	'''Calendars overlapping timetable date range
		and operating on any of its days (or any calendars, if none are set).'''
	start_date, end_date = (
		validate_date(getattr(timetable, k), timetable.timetable_id, k) if getattr(timetable, k) else None
		for k in ['start_date', 'end_date'] )
	days = days_from_record(timetable)
	calendars = list()
	for cal in store.get_calendars():
		if end_date and cal.start_date > u.date_format(end_date): continue
		if start_date and cal.end_date < u.date_format(start_date): continue
		if days and not days & days_from_record(cal): continue
		calendars.append(cal)
	return calendars

def calendar_dates_service_ids(store, start_date=None, end_date=None):
	'Unique service_ids with added-service calendar_dates within (inclusive) date range.'
	return list(u.uniq(
		cd.service_id for cd in store.get_calendar_dates(exception_type=CalendarException.added)
		if (not start_date or cd.date >= start_date) and (not end_date or cd.date <= end_date) ))

def calendar_dates_for_timetable(store, timetable, service_ids, date_format='%b %d, %Y'):
	'''Return (included, excluded) lists of formatted calendar_dates
		for timetable services within its date range, ignoring dates that are in both.'''
	included, excluded = list(), list()
	for cd in sorted( store.get_calendar_dates(service_id=list(service_ids)),
			key=op.attrgetter('date') ):
		if timetable.start_date and cd.date < timetable.start_date: continue
		if timetable.end_date and cd.date > timetable.end_date: continue
		try: date = u.date_format(u.date_parse(cd.date), date_format)
		except ValueError:
			log.debug('Skipping calendar_dates entry with invalid date: {}', cd)
			continue
		dates = included if cd.exception_type is CalendarException.added else excluded
		if date not in dates: dates.append(date)
	both = set(included).intersection(excluded)
	return (
		list(d for d in included if d not in both),
		list(d for d in excluded if d not in both) )

def group_calendars_by_days(calendars):
	'OrderedDict of {calendar_code: [calendar, ...]}.'
	groups = OrderedDict()
	for cal in calendars:
		groups.setdefault(days_code(days_from_record(cal)), list()).append(cal)
	return groups
