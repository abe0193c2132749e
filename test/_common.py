import itertools as it, operator as op, functools as ft
from collections import ChainMap, OrderedDict
from collections.abc import Mapping
from pathlib import Path
import os, sys, types, re

import yaml # PyYAML module is required for tests

path_project = Path(__file__).parent.parent
sys.path.insert(1, str(path_project))
import gtfs_tt as gt

verbose = os.environ.get('GT_DEBUG')
if verbose:
	gt.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S', level=gt.u.logging.DEBUG )



class dmap(ChainMap):

	maps = None

	def __init__(self, *maps, **map0):
		maps = list((v if not isinstance( v,
			(types.GeneratorType, list, tuple) ) else OrderedDict(v)) for v in maps)
		if map0 or not maps: maps = [map0] + maps
		super(dmap, self).__init__(*maps)

	def __repr__(self):
		return '<{} {:x} {}>'.format(
			self.__class__.__name__, id(self), repr(self._asdict()) )

	def _asdict(self):
		items = dict()
		for k, v in self.items():
			if isinstance(v, self.__class__): v = v._asdict()
			items[k] = v
		return items

	def _set_attr(self, k, v):
		self.__dict__[k] = v

	def __iter__(self):
		key_set = dict.fromkeys(set().union(*self.maps), True)
		return filter(lambda k: key_set.pop(k, False), it.chain.from_iterable(self.maps))

	def __getitem__(self, k):
		k_maps = list()
		for m in self.maps:
			if k in m:
				if isinstance(m[k], Mapping): k_maps.append(m[k])
				elif not (m[k] is None and k_maps): return m[k]
		if not k_maps: raise KeyError(k)
		return self.__class__(*k_maps)

	def __getattr__(self, k):
		try: return self[k]
		except KeyError: raise AttributeError(k)

	def __setattr__(self, k, v):
		for m in map(op.attrgetter('__dict__'), [self] + self.__class__.mro()):
			if k in m:
				self._set_attr(k, v)
				break
		else: self[k] = v

	def __delitem__(self, k):
		for m in self.maps:
			if k in m: del m[k]


def yaml_load(stream, dict_cls=OrderedDict, loader_cls=yaml.SafeLoader):
	if not hasattr(yaml_load, '_cls'):
		class CustomLoader(loader_cls): pass
		def construct_mapping(loader, node):
			loader.flatten_mapping(node)
			return dict_cls(loader.construct_pairs(node))
		CustomLoader.add_constructor(
			yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping )
		# Keep "08:10" times and YYYYMMDD-like values from being resolved to anything but str/int
		res_map = CustomLoader.yaml_implicit_resolvers = CustomLoader.yaml_implicit_resolvers.copy()
		res_int = list('-+0123456789')
		for c in res_int: del res_map[c]
		CustomLoader.add_implicit_resolver(
			'tag:yaml.org,2002:int',
			re.compile(r'''^(?:[-+]?0b[0-1_]+
				|[-+]?0[0-7_]+
				|[-+]?(?:0|[1-9][0-9_]*)
				|[-+]?0x[0-9a-fA-F_]+)$''', re.X), res_int )
		yaml_load._cls = CustomLoader
	return yaml.load(stream, yaml_load._cls)

def load_test_data(path_dir, path_stem, name):
	'Load test data from specified YAML file and return as dmap object.'
	with (path_dir / '{}.test.{}.yaml'.format(path_stem, name)).open(encoding='utf-8') as src:
		return dmap(yaml_load(src))


def struct_from_val(val, cls, as_tuple=False):
	if isinstance(val, (tuple, list)): val = cls(*val)
	elif isinstance(val, (dmap, dict, OrderedDict)): val = cls(**val)
	else: raise ValueError(val)
	return val if not as_tuple else gt.u.attr.astuple(val)

@gt.u.attr_struct(defaults=None)
class TestStopTime: keys = 'stop_id dts_arr dts_dep timepoint pickup_type drop_off_type'


def store_from_data(data):
	'Store from {table: [row, ...]} mapping, e.g. "feed" key of test data.'
	return gt.store.Store.from_tables(
		OrderedDict((k, list(map(dict, rows or list()))) for k, rows in data.items()) )

def stoptimes_from_data(trip_id, stoptimes_data):
	'''StopTime records from a list of [stop_id, arrival, departure, ...] values,
		with missing departure being same as arrival, and "x" for unset times.'''
	stoptimes = list()
	for n, st in enumerate(stoptimes_data, 1):
		st = struct_from_val(st, TestStopTime)
		dts_arr, dts_dep = st.dts_arr, st.dts_dep if st.dts_dep is not None else st.dts_arr
		dts_arr, dts_dep = (None if v == 'x' else v for v in [dts_arr, dts_dep])
		stoptimes.append(gt.t.input.StopTime(
			trip_id, st.stop_id, n, dts_arr, dts_dep, timepoint=st.timepoint,
			pickup_type=st.pickup_type, drop_off_type=st.drop_off_type ))
	return stoptimes

def trips_from_data(trips_data, route_id='R1', service_id='S1'):
	'FormattedTrip list from {trip_id: [stoptime, ...]} mapping.'
	return list(
		gt.t.public.FormattedTrip( trip_id, route_id, service_id,
			stoptimes=tuple(stoptimes_from_data(trip_id, stoptimes)) )
		for trip_id, stoptimes in trips_data.items() )

def feed_rows_for_trips(trips_data, route_id='R1', service_id='S1'):
	'"trips" and "stop_times" store table rows for {trip_id: [stoptime, ...]} mapping.'
	trips, stop_times = list(), list()
	for trip_id, stoptimes in trips_data.items():
		trips.append(dict(trip_id=trip_id, route_id=route_id, service_id=service_id))
		stop_times.extend(
			gt.u.attr.asdict(st) for st in stoptimes_from_data(trip_id, stoptimes) )
	return dict(trips=trips, stop_times=stop_times)


def conf(**overrides):
	return gt.engine.conf_update(gt.engine.EngineConf(), overrides)

def trip_ids(trips): return list(trip.trip_id for trip in trips)
def stop_ids(stops): return list(stop.stop_id for stop in stops)
