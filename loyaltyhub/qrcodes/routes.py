"""
loyaltyhub/qrcodes/routes.py
----------------------------
/api/qrcode
"""
from loyaltyhub.errors import ValidationError
from loyaltyhub.qrcodes import qrcodes
from loyaltyhub.qrcodes import service
from loyaltyhub.qrcodes.models import QRCodeType
from loyaltyhub.utils.request_helpers import (
    json_body, parse_bool, query_args, require_fields, success,
)

CODE_TYPES = [t.value for t in QRCodeType]


def _check_code_type(code_type, errors):
    if code_type and code_type not in CODE_TYPES:
        errors.append(f"Code type must be one of: {', '.join(CODE_TYPES)}")


@qrcodes.route('/qrcode', methods=['GET'])
def list_qr_codes():
    args = query_args()
    if not args.get('business_id'):
        raise ValidationError(errors=['Business ID is required'])
    errors = []
    _check_code_type(args.get('code_type'), errors)
    if errors:
        raise ValidationError(errors=errors)

    rows = service.get_business_qr_codes(args['business_id'], args.get('code_type'))
    return success(qr_codes=[q.to_dict() for q in rows])


@qrcodes.route('/qrcode', methods=['POST'])
def create_qr_code():
    data = json_body()
    errors = require_fields(data, [
        ('business_id', 'Business ID is required'),
        ('content', 'Content is required'),
        ('code_type', 'Code type is required'),
    ])
    _check_code_type(data.get('code_type'), errors)
    if data.get('metadata') is not None and not isinstance(data['metadata'], (dict, list)):
        errors.append('Metadata must be a JSON object')
    if errors:
        raise ValidationError(errors=errors)

    qr = service.create_qr_code({
        'business_id': data['business_id'],
        'content':     data['content'],
        'code_type':   data['code_type'],
        'link_url':    data.get('link_url') or None,
        'description': data.get('description') or None,
        'metadata':    data.get('metadata'),
    })
    return success(201, message='QR code created successfully', qr_code=qr.to_dict())


@qrcodes.route('/qrcode', methods=['PUT'])
def update_qr_code():
    data = json_body()
    qr_id = query_args().get('id') or data.get('id')
    if not qr_id:
        raise ValidationError(errors=['QR code ID is required'])

    if parse_bool(data.get('scanned'), default=False):
        qr = service.record_scan(qr_id, scanner=data.get('unique_scanner'))
        return success(qr_code=qr.to_dict())

    errors = []
    _check_code_type(data.get('code_type'), errors)
    if errors:
        raise ValidationError(errors=errors)
    qr = service.update_qr_code(qr_id, data)
    return success(message='QR code updated successfully', qr_code=qr.to_dict())


@qrcodes.route('/qrcode', methods=['DELETE'])
def delete_qr_code():
    qr_id = query_args().get('id')
    if not qr_id:
        raise ValidationError(errors=['QR code ID is required'])
    service.delete_qr_code(qr_id)
    return success(message='QR code deleted successfully')
