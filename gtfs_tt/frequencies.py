import itertools as it, operator as op, functools as ft

import attr

from . import utils as u, types as t


log = u.get_logger('gt.frequencies')


def shift_stoptimes(stoptimes, offset, trip_id=None):
	'Return stoptimes with all (set) times shifted by offset seconds.'
	shift = lambda dts: dts if dts is None else dts + offset
	return tuple(
		attr.evolve( st,
			arrival_time=shift(st.arrival_time),
			departure_time=shift(st.departure_time),
			trip_id=trip_id or st.trip_id )
		for st in stoptimes )

def reset_to_midnight(stoptimes):
	'Shift stoptimes so that first departure is at 00:00:00.'
	if not stoptimes: return tuple(stoptimes)
	st = stoptimes[0]
	offset = st.departure_time if st.departure_time is not None else st.arrival_time
	if not offset: return tuple(stoptimes)
	return shift_stoptimes(stoptimes, -offset)

def instance_count(frequency):
	'Number of trips for [start, end) frequency interval.'
	if frequency.headway_secs <= 0: return 0
	return max(0, -(-(frequency.end_time - frequency.start_time) // frequency.headway_secs))

def format_frequency(frequency, time_format='%H:%M'):
	return t.public.FormattedFrequency(
		u.dts_format_display(frequency.start_time, time_format),
		u.dts_format_display(frequency.end_time, time_format),
		int(round(frequency.headway_secs / 60)), frequency.exact_times == 1 )

def expand_trip(trip, frequencies, timetable_id=None):
	'''Generate trip instances from frequency-template FormattedTrip.
		Returns (trips, warnings) tuple, with instance trip_id values
			being "<template_trip_id>_freq_<n>", n counting over all entries of the template.'''
	trips, warnings = list(), list()
	stoptimes = reset_to_midnight(trip.stoptimes)
	for freq in frequencies:
		if freq.headway_secs <= 0:
			warnings.append(t.public.DataGapWarning.logged( log,
				'Skipping frequency for trip_id={} with invalid headway_secs={}',
				trip.trip_id, freq.headway_secs, timetable_id=timetable_id ))
			continue
		for offset in range(freq.start_time, freq.end_time, freq.headway_secs):
			trip_id = '{}_freq_{}'.format(trip.trip_id, len(trips))
			trips.append(attr.evolve( trip,
				trip_id=trip_id, template_trip_id=trip.trip_id, frequency=freq,
				stoptimes=shift_stoptimes(stoptimes, offset, trip_id) ))
	return trips, warnings

def exact_times(frequencies):
	return any(freq.exact_times == 1 for freq in frequencies)
