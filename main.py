# -*- coding: utf-8 -*-

from twisted.internet.defer import Deferred
from twisted.internet.task import react
from twisted.logger import Logger, LogLevel, LogLevelFilterPredicate
from twisted.logger import FilteringLogObserver, textFileLogObserver
from twisted.logger import globalLogBeginner
from twisted.python.usage import UsageError

from options import UdpCatOptions
from udpsocket import usingSocket
from errors import UdpSocketError

import sys

log = Logger()

def formatDatagram(sender, data):
	return '%s:%d\t%d\t%r' % (sender.host, sender.port, len(data), data)

class Listener:
	"""
	Prints every datagram received on a socket, echoing it back to its
	sender when asked to. L{start} returns a L{Deferred} that fires after
	'count' datagrams (never when count is 0) or on the first error.
	"""
	def __init__(self, sock, size, count=0, echo=False, out=None):
		self.sock = sock
		self.buffer = bytearray(size)
		self.count = count
		self.echo = echo
		self.out = out if out is not None else sys.stdout

		self.received = 0
		self.done = Deferred()

	def start(self):
		self.receive()
		return self.done

	def receive(self):
		d = self.sock.receiveFrom(self.buffer, 0, len(self.buffer))
		d.addCallbacks(self.datagramReceived, self.done.errback)

	def datagramReceived(self, result):
		count, sender = result

		self.out.write(formatDatagram(sender, bytes(self.buffer[:count])) + '\n')
		self.out.flush()

		self.received += 1

		if self.echo:
			d = self.sock.sendTo(self.buffer, 0, count, sender)
			d.addCallbacks(lambda _: self.next(), self.done.errback)
		else:
			self.next()

	def next(self):
		# Runs inside the socket's receive callback; the next receive is
		# queued and served by the same read loop, so the stack stays flat.
		if self.count and self.received >= self.count:
			self.done.callback(self.received)
		else:
			self.receive()

def listen(sock, config, out=None):
	out = out if out is not None else sys.stdout

	sock.bind(config['bind'])

	host = sock.getHost()
	out.write('Listening on %s:%d\n' % (host.host, host.port))
	out.flush()

	return Listener(
		sock, config['size'], config['count'], config['echo'], out).start()

def send(sock, config, out=None):
	out = out if out is not None else sys.stdout
	payload = config['payload']

	if config['bind'] is not None:
		sock.bind(config['bind'])

	def sent(count):
		out.write('Sent %d bytes\n' % (count,))
		out.flush()

		if not config['wait']:
			return count

		return Listener(sock, config['size'], 1, False, out).start()

	d = sock.sendTo(payload, 0, len(payload), config['destination'])
	return d.addCallback(sent)

commands = {
	'listen': listen,
	'send': send,
}

def startLogging(verbose):
	level = LogLevel.debug if verbose else LogLevel.warn
	predicate = LogLevelFilterPredicate(defaultLogLevel=level)

	globalLogBeginner.beginLoggingTo([
		FilteringLogObserver(textFileLogObserver(sys.stderr), [predicate])
	])

def run(rtr, config):
	command = commands[config.subCommand]

	def failed(failure):
		failure.trap(UdpSocketError)
		log.error('{command} failed: {error}',
			command=config.subCommand, error=failure.value)
		raise SystemExit(1)

	d = usingSocket(
		config['family'], command, config.subOptions, rtr=rtr)

	return d.addCallbacks(lambda _: None, failed)

def main(argv=None):
	config = UdpCatOptions()

	try:
		config.parseOptions(argv)

	except UsageError as e:
		sys.stderr.write(' * %s\n\n%s\n' % (e, config))
		return 1

	startLogging(config['verbose'])
	react(run, (config,))

if __name__ == '__main__':
	sys.exit(main())
