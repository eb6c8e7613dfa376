# -*- coding: utf-8 -*-

from twisted.internet.address import IPv4Address, IPv6Address
from twisted.trial import unittest

import errno
import socket

from endpoint import socketFamily, familyName, toSockaddr, fromSockaddr
from endpoint import parseEndpoint, IPv4, IPv6
from errors import InvalidArgumentError, EndpointError

class SocketFamilyTests(unittest.TestCase):
	def test_constants(self):
		self.assertEqual(socketFamily(socket.AF_INET), socket.AF_INET)
		self.assertEqual(socketFamily(socket.AF_INET6), socket.AF_INET6)

	def test_kindStrings(self):
		self.assertEqual(socketFamily('IPv4'), socket.AF_INET)
		self.assertEqual(socketFamily('IPv6/UDP'), socket.AF_INET6)

	def test_unsupported(self):
		for family in (socket.AF_UNIX, 12345, 'IPX', None, True, 2.0):
			e = self.assertRaises(InvalidArgumentError, socketFamily, family)
			self.assertEqual(e.errno, errno.EAFNOSUPPORT)

	def test_invalidArgumentIsValueError(self):
		self.assertRaises(ValueError, socketFamily, 'AppleTalk')

	def test_familyName(self):
		self.assertEqual(familyName(IPv4), 'IPv4')
		self.assertEqual(familyName(IPv6), 'IPv6')

class ToSockaddrTests(unittest.TestCase):
	def test_ipv4Tuple(self):
		self.assertEqual(
			toSockaddr(IPv4, ('127.0.0.1', 53)), ('127.0.0.1', 53))

	def test_ipv4Address(self):
		self.assertEqual(
			toSockaddr(IPv4, IPv4Address('UDP', '10.0.0.1', 9)),
			('10.0.0.1', 9))

	def test_wildcard(self):
		self.assertEqual(toSockaddr(IPv4, ('', 0)), ('0.0.0.0', 0))
		self.assertEqual(toSockaddr(IPv6, ('', 0)), ('::', 0, 0, 0))

	def test_ipv6(self):
		self.assertEqual(toSockaddr(IPv6, ('::1', 80)), ('::1', 80, 0, 0))
		self.assertEqual(
			toSockaddr(IPv6, ('fe80::1', 80, 0, 2)), ('fe80::1', 80, 0, 2))
		self.assertEqual(
			toSockaddr(IPv6, IPv6Address('UDP', '::1', 7, 0, 3)),
			('::1', 7, 0, 3))

	def test_familyMismatch(self):
		e = self.assertRaises(EndpointError, toSockaddr, IPv4, ('::1', 80))
		self.assertEqual(e.errno, errno.EAFNOSUPPORT)

		e = self.assertRaises(
			EndpointError, toSockaddr, IPv6, ('127.0.0.1', 80))
		self.assertEqual(e.errno, errno.EAFNOSUPPORT)

		e = self.assertRaises(
			EndpointError, toSockaddr, IPv4, ('127.0.0.1', 80, 0, 0))
		self.assertEqual(e.errno, errno.EAFNOSUPPORT)

	def test_hostnames(self):
		e = self.assertRaises(
			EndpointError, toSockaddr, IPv4, ('localhost', 80))
		self.assertEqual(e.errno, errno.EINVAL)

	def test_ports(self):
		for port in (-1, 65536, '80', None, True):
			e = self.assertRaises(
				EndpointError, toSockaddr, IPv4, ('127.0.0.1', port))
			self.assertEqual(e.errno, errno.EINVAL)

	def test_malformed(self):
		for endpoint in ('127.0.0.1:80', ('127.0.0.1',), (80, 80), None):
			self.assertRaises(EndpointError, toSockaddr, IPv4, endpoint)

class FromSockaddrTests(unittest.TestCase):
	def test_ipv4(self):
		self.assertEqual(
			fromSockaddr(('127.0.0.1', 4000)),
			IPv4Address('UDP', '127.0.0.1', 4000))

	def test_ipv6(self):
		self.assertEqual(
			fromSockaddr(('::1', 4000, 0, 0)),
			IPv6Address('UDP', '::1', 4000, 0, 0))

class ParseEndpointTests(unittest.TestCase):
	def test_parse(self):
		self.assertEqual(parseEndpoint('127.0.0.1:8001'), ('127.0.0.1', 8001))
		self.assertEqual(parseEndpoint('[::1]:8001'), ('::1', 8001))
		self.assertEqual(parseEndpoint(':0'), ('', 0))
		self.assertEqual(parseEndpoint('[::]:53'), ('::', 53))

	def test_malformed(self):
		for text in ('127.0.0.1', '::1:80', '[::1]', 'host:port', '1.2.3.4:'):
			self.assertRaises(EndpointError, parseEndpoint, text)
