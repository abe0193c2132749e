import itertools as it, operator as op, functools as ft
import string

import attr

from . import utils as u, types as t


log = u.get_logger('gt.notes')


def note_id_key(note_id):
	return (0, int(note_id), '') if note_id.isdigit() else (1, 0, note_id)

def symbol_key(symbol):
	return (1, int(symbol), '') if symbol.isdigit() else (0, 0, symbol)

def iter_symbols():
	'Generated note symbols: a...z, then 1, 2, 3, ...'
	yield from string.ascii_lowercase
	yield from map(str, it.count(1))


def get_note_references(store, timetable_id, route_ids, trip_ids, stop_ids):
	'All unique note references for timetable, its routes, trips and stops.'
	refs = it.chain(
		store.get_note_references(timetable_id=timetable_id),
		store.get_note_references(route_id=list(route_ids), timetable_id=None),
		store.get_note_references(trip_id=list(trip_ids)),
		store.get_note_references( stop_id=list(stop_ids),
			trip_id=None, route_id=None, timetable_id=None ) )
	return list(u.uniq(refs, key=attr.astuple))

def resolve_notes(store, timetable_id, route_ids, trips, stops):
	'''Return (notes, warnings) for timetable with specified ordered trips and stops.
		Notes without explicit symbol get one from iter_symbols(),
			assigned in note_id order and skipping ones that are already in use.
		Returned FormattedNote list is sorted by symbol.'''
	warnings = list()
	stop_ids = list(u.uniq(stop.stop_id for stop in stops))
	stop_sequences = set( (st.stop_id, st.stop_sequence)
		for trip in trips for st in trip.stoptimes )

	refs_used = list()
	for ref in get_note_references(
			store, timetable_id, route_ids, list(trip.trip_id for trip in trips), stop_ids ):
		if ref.stop_sequence is None:
			refs_used.append(ref)
			continue
		if not ref.stop_id:
			warnings.append(t.public.DataGapWarning.logged( log,
				'Note reference for note_id={} has stop_sequence'
				' but no stop_id, ignoring it', ref.note_id, timetable_id=timetable_id ))
			continue
		if ref.stop_id in stop_ids and (ref.stop_id, ref.stop_sequence) in stop_sequences:
			refs_used.append(ref)
	if not refs_used: return list(), warnings

	note_refs = dict()
	for ref in refs_used: note_refs.setdefault(ref.note_id, list()).append(ref)
	notes = sorted( store.get_notes(note_id=list(note_refs)),
		key=lambda note: note_id_key(note.note_id) )
	symbols_used = set(note.symbol for note in notes if note.symbol)
	symbols = (s for s in iter_symbols() if s not in symbols_used)

	notes_formatted = list()
	for note in u.uniq(notes, key=op.attrgetter('note_id')):
		notes_formatted.append(t.public.FormattedNote(
			note.note_id, note.symbol or next(symbols), note.note,
			tuple(note_refs[note.note_id]) ))
	notes_formatted.sort(key=lambda note: symbol_key(note.symbol))
	return notes_formatted, warnings


def ref_matches(ref, trip_id=None, stop_id=None, route_id=None):
	if ref.trip_id and ref.trip_id != trip_id: return False
	if ref.stop_id and ref.stop_id != stop_id: return False
	if ref.route_id and route_id and ref.route_id != route_id: return False
	return True

def notes_for(notes, trip_id=None, stop_id=None, route_id=None):
	'''Notes that apply to specified trip, stop or trip at the stop (grid cell).
		Timetable/route-wide notes match any query.'''
	return list( note for note in notes
		if any(ref_matches(ref, trip_id, stop_id, route_id) for ref in note.references) )
