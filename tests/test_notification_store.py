from datetime import timedelta

from sqlmodel import Session

from app.db.init_db import init_db
from app.db.session import engine
from app.models.base import utc_now
from app.models.comment import Comment
from app.models.enums import NotificationType, ProductCondition
from app.models.notification import Notification
from app.models.product import Product
from app.services import notification_service as store


def _product(session: Session, owner_id: str) -> Product:
    product = Product(
        owner_id=owner_id,
        name='Desk lamp',
        category='home',
        condition=ProductCondition.LIKE_NEW,
        location='Jakarta',
        price=120000,
        whatsapp_number='628111111111',
        image_url='products/lamp.jpg',
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def test_unread_count_tracks_reads():
    init_db(drop_all=True)
    with Session(engine) as session:
        ids = [
            store.create_notification(
                session,
                user_id='owner',
                kind=NotificationType.COMMENT,
                title='t',
                body=f"b{i}",
                actor_id='actor',
            ).id
            for i in range(5)
        ]
        assert store.unread_count(session, 'owner') == 5

        assert store.mark_read(session, 'owner', ids[0]) == 1
        assert store.mark_read(session, 'owner', ids[1]) == 1
        assert store.mark_read(session, 'owner', ids[1]) == 0
        assert store.mark_read(session, 'someone-else', ids[2]) == 0
        assert store.unread_count(session, 'owner') == 3

        unread = store.list_notifications(session, 'owner', unread_only=True)
        assert {item.id for item in unread} == set(ids[2:])

        assert store.mark_all_read(session, 'owner') == 3
        assert store.unread_count(session, 'owner') == 0


def test_list_is_newest_first_and_paged():
    init_db(drop_all=True)
    now = utc_now()
    with Session(engine) as session:
        for offset in range(3):
            session.add(
                Notification(
                    user_id='owner',
                    type=NotificationType.SYSTEM,
                    title='t',
                    body=f"n{offset}",
                    created_at=now - timedelta(minutes=offset),
                )
            )
        session.commit()

        bodies = [item.body for item in store.list_notifications(session, 'owner')]
        assert bodies == ['n0', 'n1', 'n2']
        page = store.list_notifications(session, 'owner', limit=1, offset=1)
        assert [item.body for item in page] == ['n1']


def test_annotation_tolerates_deleted_references():
    init_db(drop_all=True)
    with Session(engine) as session:
        product = _product(session, 'owner')
        comment = Comment(product_id=product.id, user_id='actor', content='Is it still available?')
        session.add(comment)
        session.commit()
        session.refresh(comment)

        live = store.create_notification(
            session,
            user_id='owner',
            kind=NotificationType.COMMENT,
            title='t',
            body='b',
            actor_id='actor',
            product_id=product.id,
            comment_id=comment.id,
        )
        dangling = store.create_notification(
            session,
            user_id='owner',
            kind=NotificationType.COMMENT,
            title='t',
            body='b',
            actor_id='actor',
            product_id='deleted-product',
            comment_id='deleted-comment',
        )

        items = {item.id: item for item in store.annotate_notifications(session, [live, dangling])}

        assert items[live.id].product_name == 'Desk lamp'
        assert items[live.id].product_image.endswith('/products/lamp.jpg')
        assert items[live.id].comment_text == 'Is it still available?'
        assert items[dangling.id].product_id == 'deleted-product'
        assert items[dangling.id].product_name is None
        assert items[dangling.id].product_image is None
        assert items[dangling.id].comment_text is None


def test_delete_is_scoped_to_owner():
    init_db(drop_all=True)
    with Session(engine) as session:
        record = store.create_notification(
            session, user_id='owner', kind=NotificationType.REPLY, title='t', body='b'
        )
        assert store.delete_notification(session, 'intruder', record.id) is False
        assert store.delete_notification(session, 'owner', record.id) is True
        assert store.get_notification(session, 'owner', record.id) is None


def test_wishlist_removal_matches_actor_exactly():
    init_db(drop_all=True)
    with Session(engine) as session:
        mine = store.create_notification(
            session,
            user_id='owner',
            kind=NotificationType.WISHLIST,
            title='t',
            body='b',
            actor_id='alice',
            product_id='p1',
        )
        theirs = store.create_notification(
            session,
            user_id='owner',
            kind=NotificationType.WISHLIST,
            title='t',
            body='b',
            actor_id='bob',
            product_id='p1',
        )

        assert store.remove_wishlist_notification(session, 'owner', 'p1', 'alice') == mine.id
        assert store.remove_wishlist_notification(session, 'owner', 'p1', 'alice') is None
        assert store.get_notification(session, 'owner', theirs.id) is not None


def test_wishlist_removal_falls_back_to_unattributed_rows():
    init_db(drop_all=True)
    with Session(engine) as session:
        legacy = store.create_notification(
            session,
            user_id='owner',
            kind=NotificationType.WISHLIST,
            title='t',
            body='b',
            product_id='p1',
        )
        assert store.remove_wishlist_notification(session, 'owner', 'p1', 'carol') == legacy.id
