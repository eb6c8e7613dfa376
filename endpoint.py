# -*- coding: utf-8 -*-

import errno
import socket

from twisted.internet.abstract import isIPAddress, isIPv6Address
from twisted.internet.address import IPv4Address, IPv6Address

from errors import InvalidArgumentError, EndpointError

IPv4 = socket.AF_INET
IPv6 = socket.AF_INET6

families = {
	'IPv4': IPv4,
	'IPv6': IPv6,
}

wildcards = {
	IPv4: '0.0.0.0',
	IPv6: '::',
}

def socketFamily(family):
	"""
	Returns the socket module constant for an address family given either as
	the constant itself or as a kind string ('IPv4', 'IPv6/UDP', ...).

	@raise InvalidArgumentError: for anything but the two IP families.
	"""
	if isinstance(family, str):
		family = families.get(family.split('/')[0])

	elif isinstance(family, int) and not isinstance(family, bool):
		family = socket.AddressFamily(family) if family in (IPv4, IPv6) else None

	else:
		family = None

	if family is None:
		raise InvalidArgumentError(
			errno.EAFNOSUPPORT, 'Only IPv4 and IPv6 families are supported')

	return family

def familyName(family):
	return 'IPv6' if socketFamily(family) == IPv6 else 'IPv4'

def toSockaddr(family, endpoint):
	"""
	Validates an endpoint against the socket family and returns the address
	tuple expected by the socket module.

	@param endpoint: a (host, port) tuple, a (host, port, flowinfo, scopeid)
					tuple for IPv6, or an L{IPv4Address}/L{IPv6Address}. An
					empty host stands for the wildcard address.

	@raise EndpointError: with EINVAL for malformed endpoints and with
						EAFNOSUPPORT when the host belongs to the other family.
	"""
	flowInfo, scopeID = 0, 0
	sixTuple = False

	if isinstance(endpoint, IPv6Address):
		host, port = endpoint.host, endpoint.port
		flowInfo, scopeID = endpoint.flowInfo, endpoint.scopeID

	elif isinstance(endpoint, IPv4Address):
		host, port = endpoint.host, endpoint.port

	elif isinstance(endpoint, tuple) and len(endpoint) in (2, 4):
		host, port = endpoint[:2]

		if len(endpoint) == 4:
			flowInfo, scopeID = endpoint[2:]
			sixTuple = True

	else:
		raise EndpointError(errno.EINVAL, 'Malformed endpoint %r' % (endpoint,))

	if not isinstance(host, str):
		raise EndpointError(errno.EINVAL, 'Malformed host %r' % (host,))

	if isinstance(port, bool) or not isinstance(port, int) or \
		not 0 <= port <= 65535:
		raise EndpointError(errno.EINVAL, 'Invalid port %r' % (port,))

	if host == '':
		host = wildcards[family]

	if family == IPv4:
		if isIPv6Address(host):
			raise EndpointError(
				errno.EAFNOSUPPORT, '%s is not an IPv4 address' % (host,))

		if not isIPAddress(host):
			raise EndpointError(
				errno.EINVAL, '%s is not an IP address literal' % (host,))

		if sixTuple:
			raise EndpointError(
				errno.EAFNOSUPPORT, 'IPv6 endpoint given to an IPv4 socket')

		return (host, port)

	if isIPAddress(host):
		raise EndpointError(
			errno.EAFNOSUPPORT, '%s is not an IPv6 address' % (host,))

	if not isIPv6Address(host):
		raise EndpointError(
			errno.EINVAL, '%s is not an IP address literal' % (host,))

	return (host, port, flowInfo, scopeID)

def fromSockaddr(sockaddr):
	"""
	Builds the Twisted address object for a socket address tuple.
	"""
	if len(sockaddr) == 4:
		host, port, flowInfo, scopeID = sockaddr
		return IPv6Address('UDP', host, port, flowInfo, scopeID)

	host, port = sockaddr
	return IPv4Address('UDP', host, port)

def parseEndpoint(text):
	"""
	Parses 'host:port', '[v6host]:port' or ':port' into a (host, port) tuple.
	"""
	if text.startswith('['):
		host, sep, port = text[1:].partition(']:')
	else:
		host, sep, port = text.rpartition(':')

		if ':' in host:
			sep = ''

	if not sep or not port.isdigit():
		raise EndpointError(errno.EINVAL, 'Malformed endpoint %r' % (text,))

	return (host, int(port))
