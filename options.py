# -*- coding: utf-8 -*-

from twisted.python.usage import Options, UsageError

from endpoint import socketFamily, familyName, parseEndpoint
from errors import InvalidArgumentError

def positive(value):
	value = int(value)

	if value <= 0:
		raise ValueError('must be a positive integer')

	return value

def endpointOption(option, text):
	try:
		return parseEndpoint(text)
	except InvalidArgumentError as e:
		raise UsageError('Invalid %s endpoint: %s' % (option, e.strerror))

class ListenOptions(Options):
	synopsis = '[options]'

	optParameters = [
		['bind', 'b', None, 'Local endpoint (default 127.0.0.1:0 or [::1]:0)'],
		['size', 's', 65535, 'Receive buffer size in bytes', positive],
		['count', 'c', 0, 'Exit after this many datagrams (0: never)', int],
	]

	optFlags = [
		['echo', 'e', 'Send every datagram back to its sender'],
	]

	def postOptions(self):
		if self['bind'] is None:
			if familyName(self.parent['family']) == 'IPv6':
				self['bind'] = '[::1]:0'
			else:
				self['bind'] = '127.0.0.1:0'

		self['bind'] = endpointOption('bind', self['bind'])

		if self['count'] < 0:
			raise UsageError('count must not be negative')

class SendOptions(Options):
	synopsis = '[options] <destination> [payload ...]'

	optParameters = [
		['bind', 'b', None, 'Local endpoint to send from'],
		['size', 's', 65535, 'Reply buffer size in bytes', positive],
	]

	optFlags = [
		['wait', 'w', 'Wait for one reply and print it'],
	]

	def parseArgs(self, destination, *payload):
		self['destination'] = endpointOption('destination', destination)
		self['payload'] = ' '.join(payload).encode('utf-8')

	def postOptions(self):
		if self['bind'] is not None:
			self['bind'] = endpointOption('bind', self['bind'])

class UdpCatOptions(Options):
	"""
	Command line of udpcat. The address family must come before the
	sub-command so sub-commands can pick their defaults from it.
	"""
	synopsis = 'udpcat [options] <listen|send> [command options]'

	optFlags = [
		['verbose', 'v', 'Log socket activity to stderr'],
	]

	subCommands = [
		['listen', None, ListenOptions, 'Print (and echo) received datagrams'],
		['send', None, SendOptions, 'Send one datagram'],
	]

	def __init__(self):
		Options.__init__(self)
		self['family'] = socketFamily('IPv4')

	def opt_family(self, family):
		"""
		Address family, IPv4 (default) or IPv6
		"""
		try:
			self['family'] = socketFamily(family)
		except InvalidArgumentError:
			raise UsageError('Unknown address family %s' % (family,))

	opt_f = opt_family

	def postOptions(self):
		if self.subCommand is None:
			raise UsageError('Missing command')
