# -*- coding: utf-8 -*-

from zope.interface import implementer

from twisted.internet.interfaces import IReadDescriptor, IWriteDescriptor
from twisted.internet.defer import maybeDeferred, succeed, fail
from twisted.internet.defer import Deferred
from twisted.internet import reactor
from twisted.logger import Logger

from collections import deque

import errno
import socket

from endpoint import socketFamily, familyName, toSockaddr, fromSockaddr
from errors import UdpSocketError, InvalidArgumentError, EndpointError
from errors import BindError, SendError, ReceiveError, CloseError
from errors import AlreadyDisposedError, fromOSError

_WOULDBLOCK = (errno.EAGAIN, errno.EWOULDBLOCK)

def _window(buffer, offset, size, writable):
	"""
	Returns a memoryview over buffer[offset:offset + size]. A size of None
	means up to the end of the buffer.
	"""
	try:
		view = memoryview(buffer).cast('B')
	except TypeError as e:
		raise InvalidArgumentError(errno.EINVAL, str(e))

	if writable and view.readonly:
		raise InvalidArgumentError(errno.EINVAL, 'Buffer is not writable')

	for name, value in (('offset', offset), ('size', size)):
		if value is None and name == 'size':
			continue

		if isinstance(value, bool) or not isinstance(value, int):
			raise InvalidArgumentError(
				errno.EINVAL, 'Invalid %s %r' % (name, value))

	if size is None:
		size = len(view) - offset

	if offset < 0 or size < 0 or offset + size > len(view):
		raise InvalidArgumentError(
			errno.EINVAL, 'Offset %d and size %d fall outside a %d bytes buffer'
			% (offset, size, len(view)))

	return view[offset:offset + size]

@implementer(IReadDescriptor, IWriteDescriptor)
class UdpSocket:
	"""
	User Datagram Protocol services implemented directly over a non-blocking
	socket registered with the reactor.

	Each L{receiveFrom} and L{sendTo} call returns a L{Deferred} that fires
	exactly once, with the number of bytes transferred or with a failure.
	Outstanding operations are completed in the order they were issued, as
	the reactor reports the socket readable or writable.

	The handle owns its socket. L{close} shuts the socket down in both
	directions; L{dispose} releases it and may be called any number of times.
	"""
	log = Logger()

	bound = False
	shut = False
	disposed = False

	reading = False
	writing = False
	draining = False

	def __init__(self, family, rtr=None):
		"""
		@param family: socket.AF_INET, socket.AF_INET6, or the kind strings
						'IPv4' and 'IPv6'.

		@raise InvalidArgumentError: for any other family. No socket is
						allocated in that case.
		"""
		self.family = socketFamily(family)
		self.reactor = rtr if rtr is not None else reactor

		try:
			self.socket = socket.socket(
				self.family, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
		except OSError as e:
			raise fromOSError(UdpSocketError, e)

		self.socket.setblocking(False)

		self.receivers = deque()
		self.senders = deque()

	def __repr__(self):
		return '<%s %s fd=%d>' % (
			self.__class__.__name__, familyName(self.family), self.fileno())

	def __enter__(self):
		return self

	def __exit__(self, excType, excValue, traceback):
		self.dispose()
		return False

	# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
	# Public operations
	def bind(self, endpoint):
		"""
		Binds the socket to a local endpoint. A socket is bound at most once.

		@raise BindError: if the socket is already bound, if the endpoint is
						invalid or of the other family, or if the operating
						system refuses the address.
		"""
		self._checkDisposed()

		if self.bound:
			raise BindError(errno.EINVAL, 'Socket already bound')

		try:
			sockaddr = toSockaddr(self.family, endpoint)
			self.socket.bind(sockaddr)

		except EndpointError as e:
			raise BindError(e.errno, e.strerror)

		except OSError as e:
			raise fromOSError(BindError, e)

		self.bound = True
		self.log.debug('Bound to {endpoint}', endpoint=self.getHost())

	def receiveFrom(self, buffer, offset=0, size=None):
		"""
		Receives one datagram into buffer[offset:offset + size].

		Datagrams longer than size are truncated to size bytes, the rest being
		discarded by the kernel.

		@return: a L{Deferred} firing with (count, sender), sender being an
				L{IPv4Address} or L{IPv6Address}, or failing with
				L{ReceiveError}.
		"""
		if self.disposed:
			return fail(AlreadyDisposedError())

		try:
			view = _window(buffer, offset, size, True)
		except InvalidArgumentError as e:
			return fail(e)

		d = Deferred()
		self.receivers.append((d, view))

		# Receives issued from a receive callback are served by the running
		# doRead loop.
		if len(self.receivers) == 1 and not self.draining:
			self.doRead()

		if self.receivers:
			self.startReading()

		return d

	def sendTo(self, buffer, offset, size, endpoint):
		"""
		Sends buffer[offset:offset + size] as one datagram to endpoint.

		@return: a L{Deferred} firing with the number of bytes sent, or
				failing with L{SendError}. A short send is a failure.
		"""
		if self.disposed:
			return fail(AlreadyDisposedError())

		try:
			view = _window(buffer, offset, size, False)
			sockaddr = toSockaddr(self.family, endpoint)

		except EndpointError as e:
			return fail(SendError(e.errno, e.strerror))

		except InvalidArgumentError as e:
			return fail(e)

		if self.shut:
			return fail(SendError(errno.ESHUTDOWN, 'Socket is closed'))

		if not self.senders:
			try:
				return self._sent(self.socket.sendto(view, sockaddr), len(view))

			except OSError as e:
				if e.errno not in _WOULDBLOCK:
					return fail(fromOSError(SendError, e))

		d = Deferred()
		self.senders.append((d, bytes(view), sockaddr))
		self.startWriting()

		self.log.debug(
			'Queued a {size} bytes datagram to {endpoint}',
			size=len(view), endpoint=fromSockaddr(sockaddr))

		return d

	def close(self):
		"""
		Shuts the socket down in both directions without releasing it.
		Pending operations fail. Closing twice is reported by the operating
		system and raised as L{CloseError}.
		"""
		self._checkDisposed()

		try:
			self.socket.shutdown(socket.SHUT_RDWR)

		except OSError as e:
			# Unconnected datagram sockets report ENOTCONN even though the
			# shutdown took effect.
			if e.errno != errno.ENOTCONN or self.shut:
				raise fromOSError(CloseError, e)

		self.shut = True
		self.log.debug('{socket} shut down', socket=self)

		self._abort(errno.ESHUTDOWN, 'Socket is closed')

	def dispose(self):
		"""
		Releases the socket. Only the first call has effect and no call ever
		raises.
		"""
		if self.disposed:
			return

		self.stopReading()
		self.stopWriting()

		self.disposed = True
		self._abort(errno.EBADF, 'Socket disposed')

		try:
			self.socket.close()
		except OSError:
			self.log.failure('Error while releasing the socket')

		self.log.debug('Socket disposed')

	def getHost(self):
		"""
		Returns the local endpoint, or None if no port is assigned yet.
		"""
		self._checkDisposed()

		host = fromSockaddr(self.socket.getsockname())

		if host.port == 0:
			return None

		return host

	# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
	# Reactor descriptor interface
	def fileno(self):
		if self.disposed:
			return -1

		return self.socket.fileno()

	def logPrefix(self):
		return self.__class__.__name__

	def doRead(self):
		if self.draining:
			return

		self.draining = True

		try:
			self._drain()
		finally:
			self.draining = False

		if self.receivers:
			self.startReading()
		else:
			self.stopReading()

	def _drain(self):
		while self.receivers:
			d, view = self.receivers[0]

			try:
				count, sockaddr = self.socket.recvfrom_into(view, len(view))

			except OSError as e:
				if e.errno not in _WOULDBLOCK:
					self.receivers.popleft()
					d.errback(fromOSError(ReceiveError, e))
					continue

				if self.shut:
					self.receivers.popleft()
					d.errback(ReceiveError(errno.ESHUTDOWN, 'Socket is closed'))
					continue

				break

			self.receivers.popleft()

			# No sender: the socket was shut down for reading.
			if sockaddr is None:
				d.errback(ReceiveError(errno.ESHUTDOWN, 'Socket is closed'))
				continue

			d.callback((count, fromSockaddr(sockaddr)))

	def doWrite(self):
		while self.senders:
			d, data, sockaddr = self.senders[0]

			try:
				sent = self.socket.sendto(data, sockaddr)

			except OSError as e:
				if e.errno in _WOULDBLOCK:
					break

				self.senders.popleft()
				d.errback(fromOSError(SendError, e))
				continue

			self.senders.popleft()
			self._sent(sent, len(data)).chainDeferred(d)

		if not self.senders:
			self.stopWriting()

	def connectionLost(self, reason):
		self.log.info(
			'{socket} lost by the reactor: {reason}',
			socket=self, reason=reason.getErrorMessage())
		self.dispose()

	# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
	# Helpers
	def startReading(self):
		if not self.reading and not self.disposed:
			self.reading = True
			self.reactor.addReader(self)

	def stopReading(self):
		if self.reading:
			self.reading = False
			self.reactor.removeReader(self)

	def startWriting(self):
		if not self.writing and not self.disposed:
			self.writing = True
			self.reactor.addWriter(self)

	def stopWriting(self):
		if self.writing:
			self.writing = False
			self.reactor.removeWriter(self)

	def _checkDisposed(self):
		if self.disposed:
			raise AlreadyDisposedError()

	def _sent(self, sent, size):
		if sent != size:
			return fail(SendError(
				errno.EMSGSIZE, 'Short send: %d of %d bytes' % (sent, size)))

		return succeed(sent)

	def _abort(self, code, message):
		"""
		Fails every outstanding operation. The queues are emptied before any
		errback runs so callbacks may issue new operations.
		"""
		receivers, self.receivers = self.receivers, deque()
		senders, self.senders = self.senders, deque()

		self.stopReading()
		self.stopWriting()

		for d, _ in receivers:
			d.errback(ReceiveError(code, message))

		for d, _, _ in senders:
			d.errback(SendError(code, message))

def usingSocket(family, f, *args, **kw):
	"""
	Creates a L{UdpSocket}, calls f(socket, *args, **kw) and disposes of the
	socket once the result of f is available, whether it succeeded or failed.

	@return: a L{Deferred} firing with the result of f.
	"""
	rtr = kw.pop('rtr', None)

	try:
		sock = UdpSocket(family, rtr)
	except UdpSocketError:
		return fail()

	def release(result):
		sock.dispose()
		return result

	return maybeDeferred(f, sock, *args, **kw).addBoth(release)
