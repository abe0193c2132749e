import itertools as it, operator as op, functools as ft
from collections import OrderedDict
from pathlib import Path
import time

from . import engine, pages, store, vis, utils as u, types as t


def calc_timer(func, *args, log=u.get_logger('gt.timer'), timer_name=None, **kws):
	if not timer_name:
		func_base = func if not isinstance(func, ft.partial) else func.func
		timer_name = '.'.join([func_base.__module__.strip('__'), func_base.__qualname__])
	log.debug('[{}] Starting...', timer_name)
	td = time.monotonic()
	data = func(*args, **kws)
	td = time.monotonic() - td
	log.debug('[{}] Finished in: {:.1f}s', timer_name, td)
	return data


def load_store(path, path_dump=None, timer_func=None, log=u.get_logger('gt.init')):
	'''Load Store from GTFS directory or a pickled Store object (if path points to a file).
		If path_dump is specified, Store parsed from GTFS dir is pickled there.'''
	store_func, store_load = store.Store.from_gtfs_dir, ft.partial(u.pickle_load, fail=True)
	if timer_func:
		store_func = ft.partial(timer_func, store_func)
		store_load = ft.partial(timer_func, store_load, timer_name='store_load')
	path = Path(path)
	if path.is_file(): data = store_load(path)
	else:
		data = store_func(path)
		if path_dump: u.pickle_dump(data, path_dump)
	log.debug( 'Loaded store: agencies={:,}, routes={:,}, trips={:,}, stops={:,}, timetables={:,}',
		*(len(data.tables[k]) for k in ['agency', 'routes', 'trips', 'stops', 'timetables']) )
	return data


stats_keys = 'timetable_pages', 'timetables', 'calendars', 'routes', 'trips', 'stops'

def build_timetable_pages( store, conf=None,
		page_ids=None, timer_func=None, log=u.get_logger('gt.pages') ):
	'''Build FormattedTimetablePage for each of page_ids, or all pages defined for the feed.
		Pages that fail to build with StructuralError are skipped, with the error in stats.
		ConfigurationError is raised if nothing can be built at all.
		Returns (pages, stats) tuple, stats being counts plus "warnings" list.'''
	tt_engine = engine.TimetableEngine(store, conf, timer_func=timer_func)
	page_list = page_ids if page_ids is not None else tt_engine.get_timetable_pages()
	stats = OrderedDict((k, 0) for k in stats_keys)
	stats['warnings'] = list()

	results = list()
	for page in page_list:
		page_id = page if isinstance(page, str) else page.timetable_page_id
		log.debug('Building timetable page: {}', page_id)
		try:
			if isinstance(page, str): page = tt_engine.get_timetable_page(page_id)
			page = tt_engine.format_timetable_page(page)
			if not page.timetables:
				raise t.public.StructuralError(
					'No timetables found for timetable_page_id={}'.format(page_id) )
		except t.public.ConfigurationError: raise
		except t.public.TimetableError as err:
			log.error('Failed to build timetable page {}: {}', page_id, err)
			stats['warnings'].append(str(err))
			continue
		stats['warnings'].extend(map(str, page.warnings))
		stats['timetable_pages'] += 1
		stats['timetables'] += len(page.timetables)
		for k, v in engine.generate_stats(page).items(): stats[k] += v
		results.append(page)

	return results, stats


def report_lines(stats, feed_names=None):
	'Lines of plain-text report for stats returned from build_timetable_pages().'
	lines = list()
	if feed_names: lines.append('Feeds: {}'.format(u.format_list_for_display(feed_names)))
	lines.extend([
		'Timetable Page Count: {:,}'.format(stats['timetable_pages']),
		'Timetable Count: {:,}'.format(stats['timetables']),
		'Calendar Service ID Count: {:,}'.format(stats['calendars']),
		'Route Count: {:,}'.format(stats['routes']),
		'Trip Count: {:,}'.format(stats['trips']),
		'Stop Count: {:,}'.format(stats['stops']) ])
	if stats['warnings']:
		lines.extend(['', 'Warnings:'])
		lines.extend(stats['warnings'])
	return lines
