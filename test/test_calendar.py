import itertools as it, operator as op, functools as ft
import unittest, datetime

from . import _common as c

cal, u = c.gt.calendar, c.gt.u


class TimeUtilsTests(unittest.TestCase):

	def test_dts_parse(self):
		self.assertEqual(u.dts_parse('08:10:00'), 8*3600 + 10*60)
		self.assertEqual(u.dts_parse('8:10'), 8*3600 + 10*60)
		self.assertEqual(u.dts_parse('25:01:30'), 25*3600 + 90)
		self.assertEqual(u.dts_parse(' '), None)
		self.assertEqual(u.dts_parse(None), None)
		self.assertEqual(u.dts_parse(600), 600)
		with self.assertRaises(ValueError): u.dts_parse('1:2:3:4')
		with self.assertRaises(ValueError): u.dts_parse('ab:cd')

	def test_dts_format(self):
		self.assertEqual(u.dts_format_display(None), '')
		self.assertEqual(u.dts_format_display(25*3600 + 10*60), '01:10')
		self.assertEqual(u.dts_format_display(13*3600 + 5*60, '%I:%M%p'), '01:05PM')

	def test_dates(self):
		self.assertEqual(u.date_parse('20240229'), datetime.date(2024, 2, 29))
		for v in '2024-02-29', '20240230', '', None, 20240229:
			with self.assertRaises(ValueError): u.date_parse(v)
		self.assertEqual(u.date_format(datetime.date(2024, 3, 1)), '20240301')

	def test_format_list_for_display(self):
		fmt = u.format_list_for_display
		self.assertEqual(fmt([]), '')
		self.assertEqual(fmt(['A']), 'A')
		self.assertEqual(fmt(['A', 'B']), 'A and B')
		self.assertEqual(fmt(['A', 'B', 'C']), 'A, B, and C')
		self.assertEqual(fmt(['A', 'B'], 'or'), 'A or B')


class DaysTests(unittest.TestCase):

	def test_days_code(self):
		self.assertEqual(cal.days_code(0b0011111), '1111100')
		self.assertEqual(cal.days_from_code('0000011'), 0b1100000)
		self.assertEqual(cal.days_from_code(cal.days_code(0b1010101)), 0b1010101)
		self.assertTrue(cal.is_days_code('1111111'))
		for code in '111111', '11111112', 'S1', None:
			self.assertFalse(cal.is_days_code(code))
		with self.assertRaises(ValueError): cal.days_from_code('weekday')

	def test_days_fields(self):
		rec = c.gt.t.input.Calendar('S1', '20240101', '20241231', 1, 1, 1, 1, 1, 0, 0)
		days = cal.days_from_record(rec)
		self.assertEqual(days, 0b0011111)
		self.assertEqual(list(cal.days_to_fields(days).values()), [1, 1, 1, 1, 1, 0, 0])
		self.assertEqual(cal.days_or([0b1, 0b100, 0b1]), 0b101)

	def test_format_days(self):
		for code, label in [
				('1111100', 'Mon-Fri'), ('0000011', 'Sat-Sun'),
				('1110100', 'Mon-Wed, Fri'), ('1010101', 'Mon, Wed, Fri, Sun'),
				('1111111', 'Mon-Sun'), ('1100000', 'Mon-Tue'),
				('0000000', 'No regular service days') ]:
			self.assertEqual(cal.format_days(cal.days_from_code(code)), label)

	def test_format_days_long(self):
		self.assertEqual(cal.format_days_long('Mon-Wed, Fri'), 'Monday-Wednesday, Friday')
		self.assertEqual(
			cal.format_days(cal.days_from_code('0000011'), list('MTWRFSU')), 'S-U' )


class CalendarsTests(unittest.TestCase):

	def setUp(self):
		self.store = c.store_from_data(dict(
			calendar=[
				dict(service_id='weekday', start_date=20240101, end_date=20241231,
					monday=1, tuesday=1, wednesday=1, thursday=1, friday=1),
				dict(service_id='weekend', start_date=20240101, end_date=20241231,
					saturday=1, sunday=1),
				dict(service_id='old', start_date=20230101, end_date=20231231, monday=1) ],
			calendar_dates=[
				dict(service_id='weekday', date=20240704, exception_type=2),
				dict(service_id='weekday', date=20240706, exception_type=1),
				dict(service_id='weekday', date=20240706, exception_type=2),
				dict(service_id='weekend', date=20240708, exception_type=1),
				dict(service_id='extra', date=20240315, exception_type=1),
				dict(service_id='extra', date=20250315, exception_type=1) ] ))

	def timetable(self, **kws):
		kws.setdefault('timetable_id', 'T1')
		return c.gt.t.input.Timetable(**kws)

	def test_calendars_for_timetable(self):
		ids = lambda tt: list(rec.service_id for rec in cal.calendars_for_timetable(self.store, tt))
		self.assertEqual(ids(self.timetable()), ['weekday', 'weekend', 'old'])
		self.assertEqual(
			ids(self.timetable(start_date='20240101', end_date='20240630')), ['weekday', 'weekend'] )
		self.assertEqual(ids(self.timetable(start_date='20240101', saturday=1)), ['weekend'])
		self.assertEqual(ids(self.timetable(end_date='20230601', monday=1)), ['old'])

	def test_calendars_invalid_date(self):
		with self.assertRaises(c.gt.t.public.StructuralError):
			cal.calendars_for_timetable(self.store, self.timetable(start_date='2024-01-01'))

	def test_calendar_dates_service_ids(self):
		self.assertEqual(cal.calendar_dates_service_ids(self.store), ['weekday', 'weekend', 'extra'])
		self.assertEqual(
			cal.calendar_dates_service_ids(self.store, '20240315', '20240706'), ['weekday', 'extra'] )
		self.assertEqual(cal.calendar_dates_service_ids(self.store, '20250101'), ['extra'])

	def test_calendar_dates_for_timetable(self):
		tt = self.timetable(start_date='20240101', end_date='20241231')
		included, excluded = cal.calendar_dates_for_timetable(
			self.store, tt, ['weekday', 'weekend'] )
		# 20240706 is both added and removed, so not listed at all
		self.assertEqual(included, ['Jul 08, 2024'])
		self.assertEqual(excluded, ['Jul 04, 2024'])
		included, excluded = cal.calendar_dates_for_timetable(
			self.store, self.timetable(), ['extra'], date_format='%Y-%m-%d' )
		self.assertEqual((included, excluded), (['2024-03-15', '2025-03-15'], []))

	def test_group_calendars_by_days(self):
		groups = cal.group_calendars_by_days(self.store.get_calendars())
		self.assertEqual(
			list((k, list(rec.service_id for rec in v)) for k, v in groups.items()),
			[('1111100', ['weekday']), ('0000011', ['weekend']), ('1000000', ['old'])] )
