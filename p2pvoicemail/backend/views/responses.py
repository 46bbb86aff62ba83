# responses.py

from django.http import HttpResponseBadRequest, HttpResponseNotFound, JsonResponse

from p2pvoicemail.backend.errors import (DecryptionFailure, MalformedToken, SigningFailure,
                                         SpendConstructionFailure, TransactionNotFound,
                                         UnknownView, VoicemailError)

################################################################################

def error_response(e):
    '''
    translate an exception raised by the engine into an HTTP response.
    anything that is not ours is re-raised
    '''
    if isinstance(e, TransactionNotFound):
        return HttpResponseNotFound(str(e))
    if isinstance(e, UnknownView):
        return HttpResponseNotFound(f'unknown view {e.args[0]!r}')
    if isinstance(e, (ValueError, MalformedToken, DecryptionFailure)):
        return HttpResponseBadRequest(str(e))
    if isinstance(e, (SpendConstructionFailure, SigningFailure, VoicemailError)):
        return JsonResponse({'error': e.__class__.__name__, 'message': str(e)}, status=502)

    raise e


def records_response(view, records):
    return JsonResponse({
        'view': view,
        'records': [r.dict() if r is not None else None for r in records]
    })
