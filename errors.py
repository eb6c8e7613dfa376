# -*- coding: utf-8 -*-

import errno

# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# Custom exceptions surfaced by the UDP socket handle
#
#	Every error is an OSError so callers can always inspect the errno and
#	strerror attributes, even when the condition was detected by us and not
#	by the kernel.
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

class UdpSocketError(OSError):
	pass

class InvalidArgumentError(UdpSocketError, ValueError):
	pass

class EndpointError(InvalidArgumentError):
	pass

class BindError(UdpSocketError):
	pass

class SendError(UdpSocketError):
	pass

class ReceiveError(UdpSocketError):
	pass

class CloseError(UdpSocketError):
	pass

class AlreadyDisposedError(UdpSocketError):
	def __init__(self, code=errno.EBADF, message='Socket already disposed'):
		UdpSocketError.__init__(self, code, message)

def fromOSError(kind, e):
	"""
	Translate an L{OSError} raised by the socket module into one of our own
	errors, keeping the OS error code.
	"""
	return kind(e.errno, e.strerror or str(e))
