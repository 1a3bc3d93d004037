"""Describes the Recipe Room domain. Centres around the `Recipe`.

What lives here?

- Recipes, their categories and slugs.
- Reading recipes out of photographs, webpages and chat with a large language
  model. The model sits behind an api. Its answers are cleaned up before use
  and several answers for the same recipe are merged into one.
- Storage of recipes and users in a relational database.

The web layer in `recipe_room` should only ever talk to this package.
"""
