import itertools as it, operator as op, functools as ft
from collections import namedtuple, OrderedDict
from pathlib import Path
import os, csv

import attr

from . import utils as u, types as t


log = u.get_logger('gt.store')


# GTFS and timetable-extension files (without .txt) and record types for them
table_types = OrderedDict([
	('agency', t.input.Agency),
	('routes', t.input.Route),
	('stops', t.input.Stop),
	('stop_attributes', t.input.StopAttributes),
	('trips', t.input.Trip),
	('stop_times', t.input.StopTime),
	('calendar', t.input.Calendar),
	('calendar_dates', t.input.CalendarDate),
	('frequencies', t.input.Frequency),
	('timetables', t.input.Timetable),
	('timetable_pages', t.input.TimetablePage),
	('timetable_stop_order', t.input.TimetableStopOrder),
	('timetable_notes', t.input.Note),
	('timetable_notes_references', t.input.NoteReference) ])


def iter_gtfs_tuples(gtfs_dir, filename, empty_if_missing=False):
	log.debug('Processing gtfs file: {}', filename)
	if filename.endswith('.txt'): filename = filename[:-4]
	tuple_t = ''.join(' '.join(filename.rstrip('s').split('_')).title().split())
	p = Path(gtfs_dir) / '{}.txt'.format(filename)
	if empty_if_missing and not os.access(str(p), os.R_OK): return
	with p.open(encoding='utf-8-sig') as src:
		src_csv = csv.reader(src)
		fields = list(v.strip() for v in next(src_csv))
		tuple_t = namedtuple(tuple_t, fields, rename=True)
		for line in src_csv:
			if not line: continue
			try: yield tuple_t(*line)
			except TypeError:
				log.debug('Skipping bogus CSV line (file: {}): {!r}', p, line)

def record_from_row(record_t, row):
	'Build record of specified type from mapping, ignoring unknown fields.'
	fields = attr.fields_dict(record_t)
	if record_t is t.input.Timetable and 'route_ids' not in row:
		row = dict(row, route_ids=row.get('route_id'))
	return record_t(**dict((k, v) for k, v in row.items() if k in fields))


class Store:
	'''Read-only in-memory repository of GTFS records.
		All get_* filters accept either scalar value or list of them (any can match),
			with None values matching unset fields, e.g. get_trips(route_id=['R1', 'R2']).'''

	def __init__(self):
		self.tables = dict((name, list()) for name in table_types)

	@classmethod
	def from_tables(cls, tables):
		'Create Store from {table_name: [row_mapping, ...]} data, e.g. loaded from YAML.'
		store = cls()
		for name, rows in (tables or dict()).items():
			if name not in table_types: raise KeyError('Unknown table: {!r}'.format(name))
			for row in rows or list(): store.add(name, dict(row))
		return store

	@classmethod
	def from_gtfs_dir(cls, gtfs_dir):
		'Create Store from GTFS (+ timetable extensions) directory of CSV files.'
		store, gtfs_dir = cls(), Path(gtfs_dir)
		for name in table_types:
			for row in iter_gtfs_tuples(gtfs_dir, name, empty_if_missing=True):
				try: store.add(name, row._asdict())
				except (TypeError, ValueError) as err:
					log.debug('Skipping invalid {} row ({}): {!r}', name, err, row)
		log.debug( 'Loaded GTFS data from {}: {}', gtfs_dir,
			', '.join('{}={:,}'.format(k, len(v)) for k, v in store.tables.items() if v) )
		return store

	def add(self, table, row):
		record = record_from_row(table_types[table], row)
		self.tables[table].append(record)
		return record

	def query(self, table, sort_key=None, **filters):
		filters = list((k, u.as_list(v)) for k, v in filters.items())
		records = list( rec for rec in self.tables[table]
			if all(getattr(rec, k) in vs for k, vs in filters) )
		if sort_key: records.sort(key=sort_key)
		return records

	def get_agencies(self, **filters): return self.query('agency', **filters)
	def get_routes(self, **filters): return self.query('routes', **filters)
	def get_stops(self, **filters): return self.query('stops', **filters)
	def get_stop_attributes(self, **filters): return self.query('stop_attributes', **filters)
	def get_trips(self, **filters): return self.query('trips', **filters)
	def get_calendars(self, **filters): return self.query('calendar', **filters)
	def get_calendar_dates(self, **filters): return self.query('calendar_dates', **filters)
	def get_frequencies(self, **filters): return self.query('frequencies', **filters)
	def get_timetable_pages(self, **filters): return self.query('timetable_pages', **filters)
	def get_notes(self, **filters): return self.query('timetable_notes', **filters)

	def get_stoptimes(self, **filters):
		return self.query('stop_times', sort_key=op.attrgetter('stop_sequence'), **filters)

	def get_timetable_stop_orders(self, **filters):
		return self.query( 'timetable_stop_order',
			sort_key=op.attrgetter('stop_sequence'), **filters )

	def get_note_references(self, **filters):
		return self.query('timetable_notes_references', **filters)

	def get_timetables(self, **filters):
		'Return Timetable records, with route_ids from same-id rows merged into first one.'
		timetables = OrderedDict()
		for tt in self.query('timetables', **filters):
			tt_merged = timetables.get(tt.timetable_id)
			if tt_merged:
				tt = attr.evolve( tt_merged,
					route_ids=tuple(u.uniq(tt_merged.route_ids + tt.route_ids)) )
			timetables[tt.timetable_id] = tt
		return list(timetables.values())
