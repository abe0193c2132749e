#!/usr/bin/env python3

import itertools as it, operator as op, functools as ft
from pathlib import Path
import os, sys

import attr, yaml

import gtfs_tt as gt


def dump_pages(pages, dst):
	data = list(attr.asdict(page) for page in pages)
	for page in data:
		for tt in page['timetables']: tt['symbols_used'] = sorted(tt['symbols_used'])
	yaml.safe_dump(data, dst, allow_unicode=True, default_flow_style=False, sort_keys=False)


def main(args=None):
	conf = gt.engine.EngineConf()

	import argparse
	parser = argparse.ArgumentParser(
		description='Build timetables from GTFS data and dump these as YAML.')
	parser.add_argument('gtfs_dir_or_pickle',
		help='Path to gtfs data directory to load'
			' data from or a pickled store object (if points to a file).')

	group = parser.add_argument_group('Basic data/output options')
	group.add_argument('--cache-store', metavar='path',
		help='Store parsed GTFS data (in pickle format) to specified file.'
			' This file can then be used in place of gtfs dir, and should load much faster.')
	group.add_argument('-o', '--output-dir', metavar='path', default='timetables',
		help='Directory to write timetables.yaml and log.txt report to. Default: %(default)s')
	group.add_argument('-p', '--page', metavar='timetable_page_id', action='append',
		help='Only build specified timetable page(s), can be used multiple times.'
			' Can be an id from timetable_pages.txt or timetables.txt,'
				' "route_<short_name>" or "<route_id>|<calendar_code>[|<direction_id>]",'
				' with calendar_code like "1111100" for mon-fri service.'
			' Default is to build all pages that can be found in the data.')

	group = parser.add_argument_group('Configuration')
	group.add_argument('-c', '--conf', metavar='path',
		help='YAML file with a mapping of EngineConf values to override.')
	group.add_argument('--engine-conf', metavar='yaml-data',
		help='Override values for EngineConf as a YAML mapping,'
				' applied after the ones from --conf file.'
			' Example: {sorting_algorithm: beginning, show_arrival_on_difference: null}')

	group = parser.add_argument_group('Misc/debug options')
	group.add_argument('--dot-for-stops', metavar='path',
		help='Dump stop graph of the first built timetable'
			' (or one specified by --dot-timetable) in graphviz dot format to a file and exit.')
	group.add_argument('--dot-timetable', metavar='timetable_id',
		help='timetable_id to use for --dot-for-stops output.')
	group.add_argument('--dot-opts', metavar='yaml-data',
		help='Options for graphviz graph/nodes/edges to use with all'
			' --dot-for-* commands, as a YAML mappings. Example: {graph: {rankdir: LR}}')
	group.add_argument('--debug', action='store_true', help='Verbose operation mode.')

	opts = parser.parse_args(sys.argv[1:] if args is None else args)

	gt.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S',
		level=gt.u.logging.DEBUG if opts.debug else gt.u.logging.WARNING )

	conf_overrides = list()
	if opts.conf:
		with open(opts.conf) as src: conf_overrides.append(yaml.safe_load(src))
	if opts.engine_conf: conf_overrides.append(yaml.safe_load(opts.engine_conf))
	for overrides in conf_overrides:
		if overrides is not None and not isinstance(overrides, dict):
			parser.error('Engine conf must be a YAML mapping, not: {!r}'.format(overrides))
		try: gt.engine.conf_update(conf, overrides)
		except gt.t.public.ConfigurationError as err: parser.error(str(err))

	store = gt.load_store( opts.gtfs_dir_or_pickle,
		path_dump=opts.cache_store, timer_func=gt.calc_timer )

	try:
		pages, stats = gt.build_timetable_pages(
			store, conf, page_ids=opts.page, timer_func=gt.calc_timer )
	except gt.t.public.ConfigurationError as err:
		parser.error('Unable to build any timetables: {}'.format(err))

	if opts.dot_for_stops:
		timetables = list(it.chain.from_iterable(page.timetables for page in pages))
		if opts.dot_timetable:
			timetables = list(tt for tt in timetables if tt.timetable_id == opts.dot_timetable)
		if not timetables: parser.error('No timetables to dump stop graph for')
		dot_opts = yaml.safe_load(opts.dot_opts) if opts.dot_opts else dict()
		with gt.u.safe_replacement(opts.dot_for_stops) as dst:
			gt.vis.dot_for_stops(timetables[0], dst, dot_opts=dot_opts)
		return

	out_dir = Path(opts.output_dir)
	os.makedirs(str(out_dir), exist_ok=True)
	with gt.u.safe_replacement(out_dir / 'timetables.yaml') as dst: dump_pages(pages, dst)
	feed_names = list(filter(None, (a.agency_name for a in store.get_agencies())))
	with gt.u.safe_replacement(out_dir / 'log.txt') as dst:
		for line in gt.report_lines(stats, feed_names): dst.write(line + '\n')

if __name__ == '__main__': sys.exit(main())
