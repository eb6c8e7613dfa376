# -*- coding: utf-8 -*-

from twisted.python.usage import UsageError
from twisted.trial import unittest

import socket

from options import UdpCatOptions

class UdpCatOptionsTests(unittest.TestCase):
	def parse(self, *argv):
		config = UdpCatOptions()
		config.parseOptions(list(argv))
		return config

	def test_listenDefaults(self):
		config = self.parse('listen')

		self.assertEqual(config['family'], socket.AF_INET)
		self.assertFalse(config['verbose'])
		self.assertEqual(config.subCommand, 'listen')

		sub = config.subOptions
		self.assertEqual(sub['bind'], ('127.0.0.1', 0))
		self.assertEqual(sub['size'], 65535)
		self.assertEqual(sub['count'], 0)
		self.assertFalse(sub['echo'])

	def test_listenIPv6Default(self):
		config = self.parse('--family', 'IPv6', 'listen')

		self.assertEqual(config['family'], socket.AF_INET6)
		self.assertEqual(config.subOptions['bind'], ('::1', 0))

	def test_listen(self):
		config = self.parse(
			'-v', 'listen', '-b', '0.0.0.0:8001', '-s', '512', '-c', '3', '-e')
		sub = config.subOptions

		self.assertTrue(config['verbose'])
		self.assertEqual(sub['bind'], ('0.0.0.0', 8001))
		self.assertEqual(sub['size'], 512)
		self.assertEqual(sub['count'], 3)
		self.assertTrue(sub['echo'])

	def test_send(self):
		config = self.parse(
			'-f', 'IPv6', 'send', '-w', '[::1]:8001', 'hello', 'world')
		sub = config.subOptions

		self.assertEqual(config.subCommand, 'send')
		self.assertEqual(sub['destination'], ('::1', 8001))
		self.assertEqual(sub['payload'], b'hello world')
		self.assertIsNone(sub['bind'])
		self.assertTrue(sub['wait'])

	def test_sendEmptyPayload(self):
		sub = self.parse('send', '-b', ':9000', '127.0.0.1:8001').subOptions

		self.assertEqual(sub['payload'], b'')
		self.assertEqual(sub['bind'], ('', 9000))

	def test_errors(self):
		for argv in (
			[ ],
			['--family', 'IPX', 'listen'],
			['listen', '--size', '0'],
			['listen', '--count', '-1'],
			['listen', '--bind', 'localhost'],
			['send'],
			['send', 'nowhere'],
			['send', '--bind', '::1', '127.0.0.1:80'],
			['shout'],
		):
			self.assertRaises(UsageError, self.parse, *argv)
