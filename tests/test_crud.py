import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from app.core.database import AsyncSessionLocal
from app.core.exceptions import AlreadyMemberException, ProductNotFoundException
from app.api.v1.wishlists.crud import UserCRUD, WishlistCRUD
from app.models import ProductComment, ProductReaction, WishlistMember, WishlistProduct

async def _wishlist_with_product(db, users):
    x, y = users["x"], users["y"]
    wishlist = await WishlistCRUD.create_wishlist(db, "Birthday", None, x.id)
    await WishlistCRUD.append_member(db, wishlist.id, y.id)
    product = await WishlistCRUD.append_product(
        db, wishlist.id, "Lamp", "http://example.com/lamp.png", Decimal("29.99"), x.id
    )
    return wishlist.id, product.id

async def _count(db, model):
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()

async def test_creator_is_first_member(db, users):
    x = users["x"]
    wishlist = await WishlistCRUD.create_wishlist(db, "Birthday", "Gift ideas", x.id)

    assert wishlist.creator_id == x.id
    assert wishlist.member_ids == {x.id}
    assert [member.username for member in wishlist.members] == ["x"]
    assert wishlist.products == []

async def test_list_for_member_returns_only_own_wishlists(db, users):
    x, y = users["x"], users["y"]
    first = await WishlistCRUD.create_wishlist(db, "First", None, x.id)
    second = await WishlistCRUD.create_wishlist(db, "Second", None, x.id)

    listed = await WishlistCRUD.list_for_member(db, x.id)
    assert [w.id for w in listed] == [second.id, first.id]
    assert await WishlistCRUD.list_for_member(db, y.id) == []

async def test_get_by_email_is_case_insensitive(db, users):
    found = await UserCRUD.get_by_email(db, "  Y@Example.COM ")
    assert found.id == users["y"].id
    assert await UserCRUD.get_by_email(db, "nobody@example.com") is None
    assert (await UserCRUD.get_by_id(db, users["x"].id)).username == "x"

async def test_append_member_rejects_duplicates(db, users):
    x, y = users["x"], users["y"]
    wishlist = await WishlistCRUD.create_wishlist(db, "Birthday", None, x.id)
    await WishlistCRUD.append_member(db, wishlist.id, y.id)

    with pytest.raises(AlreadyMemberException):
        await WishlistCRUD.append_member(db, wishlist.id, y.id)
    with pytest.raises(AlreadyMemberException):
        await WishlistCRUD.append_member(db, wishlist.id, x.id)

    refreshed = await WishlistCRUD.get_by_id(db, wishlist.id)
    assert [m.id for m in refreshed.members] == [x.id, y.id]

async def test_products_keep_insertion_order(db, users):
    x = users["x"]
    wishlist = await WishlistCRUD.create_wishlist(db, "Birthday", None, x.id)
    for name in ("Lamp", "Book", "Mug"):
        await WishlistCRUD.append_product(
            db, wishlist.id, name, "http://example.com/p.png", Decimal("1.00"), x.id
        )

    refreshed = await WishlistCRUD.get_by_id(db, wishlist.id)
    assert [p.name for p in refreshed.products] == ["Lamp", "Book", "Mug"]
    assert all(p.added_by.id == x.id for p in refreshed.products)

async def test_concurrent_appends_both_persist(db, users):
    x, y = users["x"], users["y"]
    wishlist_id, _ = await _wishlist_with_product(db, users)

    async def append(name, user_id):
        async with AsyncSessionLocal() as session:
            await WishlistCRUD.append_product(
                session, wishlist_id, name, "http://example.com/p.png", Decimal("1.00"), user_id
            )

    await asyncio.gather(append("Book", x.id), append("Mug", y.id))

    refreshed = await WishlistCRUD.get_by_id(db, wishlist_id)
    names = [p.name for p in refreshed.products]
    assert names[0] == "Lamp"
    assert sorted(names[1:]) == ["Book", "Mug"]
    assert x.id in refreshed.member_ids

async def test_comments_append_in_order(db, users):
    wishlist_id, product_id = await _wishlist_with_product(db, users)
    await WishlistCRUD.append_comment(db, wishlist_id, product_id, users["x"].id, "Nice")
    await WishlistCRUD.append_comment(db, wishlist_id, product_id, users["y"].id, "Agreed")

    product = (await WishlistCRUD.get_by_id(db, wishlist_id)).get_product(product_id)
    assert [(c.user.username, c.text) for c in product.comments] == [("x", "Nice"), ("y", "Agreed")]

async def test_comment_on_missing_product(db, users):
    wishlist_id, _ = await _wishlist_with_product(db, users)
    other = await WishlistCRUD.create_wishlist(db, "Other", None, users["x"].id)
    other_product = await WishlistCRUD.append_product(
        db, other.id, "Mug", "http://example.com/mug.png", Decimal("5"), users["x"].id
    )

    with pytest.raises(ProductNotFoundException):
        await WishlistCRUD.append_comment(db, wishlist_id, other_product.id, users["x"].id, "Hi")

async def test_reaction_upsert_keeps_one_per_user(db, users):
    x, y = users["x"], users["y"]
    wishlist_id, product_id = await _wishlist_with_product(db, users)

    await WishlistCRUD.upsert_reaction(db, wishlist_id, product_id, y.id, "👍")
    await WishlistCRUD.upsert_reaction(db, wishlist_id, product_id, x.id, "🎉")
    await WishlistCRUD.upsert_reaction(db, wishlist_id, product_id, y.id, "❤️")

    product = (await WishlistCRUD.get_by_id(db, wishlist_id)).get_product(product_id)
    assert [(r.user.username, r.emoji) for r in product.reactions] == [("x", "🎉"), ("y", "❤️")]

async def test_concurrent_reactions_resolve_to_one(db, users):
    y = users["y"]
    wishlist_id, product_id = await _wishlist_with_product(db, users)

    async def react(emoji):
        async with AsyncSessionLocal() as session:
            await WishlistCRUD.upsert_reaction(session, wishlist_id, product_id, y.id, emoji)

    await asyncio.gather(react("👍"), react("❤️"))

    result = await db.execute(
        select(ProductReaction).where(
            ProductReaction.product_id == product_id,
            ProductReaction.user_id == y.id
        )
    )
    reactions = result.scalars().all()
    assert len(reactions) == 1
    assert reactions[0].emoji in ("👍", "❤️")

async def test_remove_product_cascades_to_comments_and_reactions(db, users):
    wishlist_id, product_id = await _wishlist_with_product(db, users)
    await WishlistCRUD.append_comment(db, wishlist_id, product_id, users["y"].id, "Nice")
    await WishlistCRUD.upsert_reaction(db, wishlist_id, product_id, users["y"].id, "👍")

    await WishlistCRUD.remove_product(db, wishlist_id, product_id)

    assert await _count(db, WishlistProduct) == 0
    assert await _count(db, ProductComment) == 0
    assert await _count(db, ProductReaction) == 0

async def test_remove_missing_product(db, users):
    wishlist_id, product_id = await _wishlist_with_product(db, users)
    await WishlistCRUD.remove_product(db, wishlist_id, product_id)

    with pytest.raises(ProductNotFoundException):
        await WishlistCRUD.remove_product(db, wishlist_id, product_id)

async def test_concurrent_removal_reports_not_found_once(db, users):
    wishlist_id, product_id = await _wishlist_with_product(db, users)

    async def remove():
        async with AsyncSessionLocal() as session:
            await WishlistCRUD.remove_product(session, wishlist_id, product_id)

    results = await asyncio.gather(remove(), remove(), return_exceptions=True)

    assert sum(result is None for result in results) == 1
    assert sum(isinstance(result, ProductNotFoundException) for result in results) == 1

async def test_delete_wishlist_removes_everything(db, users):
    wishlist_id, product_id = await _wishlist_with_product(db, users)
    await WishlistCRUD.append_comment(db, wishlist_id, product_id, users["y"].id, "Nice")
    await WishlistCRUD.upsert_reaction(db, wishlist_id, product_id, users["y"].id, "👍")

    assert await WishlistCRUD.delete_wishlist(db, wishlist_id) is True

    assert await WishlistCRUD.get_by_id(db, wishlist_id) is None
    assert await WishlistCRUD.list_for_member(db, users["y"].id) == []
    for model in (WishlistMember, WishlistProduct, ProductComment, ProductReaction):
        assert await _count(db, model) == 0

    assert await WishlistCRUD.delete_wishlist(db, wishlist_id) is False
