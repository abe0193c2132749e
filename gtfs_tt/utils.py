import itertools as it, operator as op, functools as ft
from collections import Counter
import os, logging, datetime
import contextlib, tempfile, stat

import attr


class LogMessage:
	def __init__(self, fmt, a, k): self.fmt, self.a, self.k = fmt, a, k
	def __str__(self): return self.fmt.format(*self.a, **self.k) if self.a or self.k else self.fmt

class LogStyleAdapter(logging.LoggerAdapter):
	def __init__(self, logger, extra=None):
		super(LogStyleAdapter, self).__init__(logger, extra or {})
	def log(self, level, msg, *args, **kws):
		if not self.isEnabledFor(level): return
		log_kws = {} if 'exc_info' not in kws else dict(exc_info=kws.pop('exc_info'))
		msg, kws = self.process(msg, kws)
		self.logger._log(level, LogMessage(msg, args, kws), (), log_kws)

get_logger = lambda name: LogStyleAdapter(logging.getLogger(name))


def attr_struct(cls=None, vals_to_attrs=False, defaults=..., **kws):
	if not cls:
		return ft.partial( attr_struct,
			vals_to_attrs=vals_to_attrs, defaults=defaults, **kws )
	try:
		keys = cls.keys
		del cls.keys
	except AttributeError: keys = list()
	else:
		attr_kws = dict()
		if defaults is not ...: attr_kws['default'] = defaults
		if isinstance(keys, str): keys = keys.split()
		for k in keys: setattr(cls, k, attr.ib(**attr_kws))
	if vals_to_attrs:
		for k, v in vars(cls).items():
			if k.startswith('_') or k in keys or callable(v): continue
			setattr(cls, k, attr.ib(v))
	kws.setdefault('hash', not hasattr(cls, '__hash__'))
	kws.setdefault('slots', True)
	return attr.s(cls, **kws)

def attr_init(factory_or_default=attr.NOTHING, **attr_kws):
	if callable(factory_or_default): factory_or_default = attr.Factory(factory_or_default)
	return attr.ib(default=factory_or_default, **attr_kws)


def max(iterable, default=..., _max=max, **kws):
	try: return _max(iterable, **kws)
	except ValueError:
		if default is ...: raise
		return default

def is_null_or_empty(v):
	return v is None or v == ''

def as_list(v):
	'Scalar-or-sequence filter value to list.'
	if isinstance(v, (list, tuple, set, frozenset)): return list(v)
	return [v]

def uniq(iterable, key=None):
	'Ordered unique values from iterable.'
	seen = set()
	for v in iterable:
		k = v if key is None else key(v)
		if k in seen: continue
		seen.add(k)
		yield v

def most_common(values, default=None):
	values = list(v for v in values if not is_null_or_empty(v))
	if not values: return default
	return Counter(values).most_common(1)[0][0]

def format_list_for_display(items, join_word='and'):
	items = list(items)
	if not items: return ''
	if len(items) == 1: return items[0]
	if len(items) == 2: return ' {} '.format(join_word).join(items)
	return '{}, {} {}'.format(', '.join(items[:-1]), join_word, items[-1])


@contextlib.contextmanager
def safe_replacement(path, *open_args, mode=None, **open_kws):
	path = str(path)
	if mode is None:
		try: mode = stat.S_IMODE(os.lstat(path).st_mode)
		except OSError: pass
	open_kws.update( delete=False,
		dir=os.path.dirname(path) or '.', prefix=os.path.basename(path)+'.' )
	if not open_args: open_kws['mode'] = 'w'
	with tempfile.NamedTemporaryFile(*open_args, **open_kws) as tmp:
		try:
			if mode is not None: os.fchmod(tmp.fileno(), mode)
			yield tmp
			if not tmp.closed: tmp.flush()
			os.rename(tmp.name, path)
		finally:
			try: os.unlink(tmp.name)
			except OSError: pass


use_pickle_cache = os.environ.get('GT_PICKLE')
pickle_log = get_logger('pickle')

def pickle_dump(state, name=use_pickle_cache or 'store.pickle'):
	import pickle
	with safe_replacement(name, 'wb') as dst:
		pickle_log.debug('Pickling data (type={}) to: {}', state.__class__.__name__, name)
		pickle.dump(state, dst)

def pickle_load(name=use_pickle_cache or 'store.pickle', fail=False):
	import pickle
	try:
		with open(str(name), 'rb') as src:
			pickle_log.debug('Unpickling data from: {}', name)
			return pickle.load(src)
	except Exception as err:
		if fail: raise
		pickle_log.debug('Failed to unpickle data from {}: {}', name, err)


def dts_parse(dts_str):
	'''Parse GTFS "H:MM[:SS]" time (hours can be >24) to int seconds after midnight.
		Empty values are returned as None, ints are passed through as-is.'''
	if dts_str is None or isinstance(dts_str, int): return dts_str
	dts_str = dts_str.strip()
	if not dts_str: return None
	if ':' not in dts_str: return int(dts_str)
	dts_vals = dts_str.split(':')
	if len(dts_vals) == 2: dts_vals.append('00')
	if len(dts_vals) != 3: raise ValueError('Invalid GTFS time value: {!r}'.format(dts_str))
	return sum(int(n)*k for k, n in zip([3600, 60, 1], dts_vals))

def dts_format_display(dts, time_format='%H:%M'):
	'Format seconds after midnight as wall-clock time, wrapping around 24h.'
	if dts is None: return ''
	dts = int(dts) % (24 * 3600)
	return datetime.time(dts // 3600, (dts % 3600) // 60, dts % 60).strftime(time_format)


gtfs_date_fmt = '%Y%m%d'

def date_parse(date_str):
	'Parse strict YYYYMMDD string to datetime.date, raising ValueError on anything else.'
	if not (isinstance(date_str, str) and len(date_str) == 8 and date_str.isdigit()):
		raise ValueError('Invalid GTFS date value: {!r}'.format(date_str))
	return datetime.datetime.strptime(date_str, gtfs_date_fmt).date()

def date_format(date, fmt=gtfs_date_fmt):
	return date.strftime(fmt)
