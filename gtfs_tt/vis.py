# Visualization tools, mostly useful for debugging

import itertools as it, operator as op, functools as ft
from collections import defaultdict, OrderedDict
import contextlib

from . import utils as u, types as t


print_fmt = lambda tpl, *a, file=None, end='\n', **k:\
	print(tpl.format(*a,**k), file=file, end=end)

dot_str = lambda n: '"{}"'.format(n.replace('"', '\\"'))
dot_html = lambda n: '<{}>'.format(n)
html_esc = lambda s: str(s).replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;')


@contextlib.contextmanager
def dot_graph(dst, dot_opts, indent=2):
	print_fmt('digraph {{', file=dst)
	if isinstance(indent, int): indent = ' '*indent
	p = lambda tpl, *a, end='\n', **k:\
		print_fmt(indent + tpl, *a, file=dst, end=end, **k)
	p('### Defaults')
	for t, opts in (dot_opts or dict()).items():
		p('{} [ {} ]'.format(t, ', '.join('{}={}'.format(k, v) for k, v in opts.items())))
	yield p
	print_fmt('}}', file=dst)


def dot_for_stops(timetable, dst, dot_opts=None):
	'''Dump stop sequence graph of FormattedTimetable trips,
		with each stop labelled by its position(s) in resolved stop order
		and edges by number of trips passing over them.'''
	stop_names, stop_pos = dict(), defaultdict(list)
	for stop in timetable.stops: stop_names[stop.stop_id] = stop.stop_name or stop.stop_id
	stop_order = timetable.stop_order.stop_ids if timetable.stop_order else list()
	for n, stop_id in enumerate(stop_order): stop_pos[stop_id].append(n)

	stop_edges = OrderedDict()
	for trip in timetable.ordered_trips:
		stop_ids = trip.stop_ids()
		for a, b in zip(stop_ids, stop_ids[1:]):
			if a == b: continue
			stop_edges[a, b] = stop_edges.get((a, b), 0) + 1
			for stop_id in a, b: stop_names.setdefault(stop_id, stop_id)

	with dot_graph(dst, dot_opts) as p:

		p('')
		p('### Labels')
		for stop_id, name in stop_names.items():
			label = '<b>{}</b><br/>{}'.format(html_esc(name), html_esc(stop_id))
			if stop_pos.get(stop_id):
				label += '<br/>[{}]'.format(', '.join(map(str, stop_pos[stop_id])))
			p('{} [label={}]'.format(dot_str('stop-{}'.format(stop_id)), dot_html(label)))

		p('')
		p('### Edges')
		for (a, b), count in stop_edges.items():
			p( '{} -> {} [label={}]', *map(dot_str,
				['stop-{}'.format(a), 'stop-{}'.format(b), str(count)]) )
