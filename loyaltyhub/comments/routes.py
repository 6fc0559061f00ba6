from loyaltyhub import repository as repo
from loyaltyhub.comments import comments
from loyaltyhub.errors import ValidationError
from loyaltyhub.utils.request_helpers import json_body, query_args, success

MAX_COMMENT_LENGTH = 5000


@comments.route('/comments', methods=['GET'])
def list_comments():
    args = query_args()
    rows = repo.comments.find_all(limit=args.get('limit', 50), offset=args.get('offset', 0),
                                  order_by='created_at', direction='desc')
    return success(comments=[c.to_dict() for c in rows])


@comments.route('/comments', methods=['POST'])
def create_comment():
    text = str(json_body().get('comment') or '').strip()
    if not text:
        raise ValidationError(errors=['Comment is required'])
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(errors=[f'Comment must be {MAX_COMMENT_LENGTH} characters or fewer'])
    comment = repo.comments.create({'comment': text})
    return success(201, message='Comment saved', comment=comment.to_dict())
