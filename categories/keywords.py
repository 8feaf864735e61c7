"""
Category Keyword Table

Keyword phrases per canonical category, used by keyword scoring.
A matched phrase scores its word count, so longer phrases outweigh
single words. Add phrases to an existing list or add a new category key.
"""

CATEGORY_KEYWORDS = {
    # ============================================================
    # PAPER & SMALL COLLECTIBLES
    # ============================================================
    'stamps': [
        'stamp', 'postage', 'postage stamp', 'first day cover', 'fdc',
        'mint stamp', 'used stamp', 'stamp sheet', 'stamp block',
        'commemorative stamp', 'definitive stamp', 'airmail stamp',
        'revenue stamp', 'overprint', 'perforation', 'imperforate',
        'souvenir sheet', 'miniature sheet', 'stamp booklet',
        'philately', 'philatelic', 'cancellation', 'postmark',
        'scott catalog', 'michel catalog', 'yvert catalog', 'stanley gibbons',
    ],
    'postcards': [
        'postcard', 'post card', 'vintage postcard', 'real photo postcard',
        'rppc', 'chrome postcard', 'linen postcard', 'greetings card',
        'picture postcard', 'topographical postcard',
    ],
    'banknotes': ['banknote', 'paper money', 'currency note', 'federal reserve note'],
    'medals': [
        'medal', 'medallion', 'military medal', 'commemorative medal',
        'bronze medal', 'silver medal', 'gold medal', 'service medal',
        'campaign medal', 'decoration', 'cross of merit',
    ],
    'tokens': [
        'token', 'transit token', 'arcade token', 'trade token',
        'casino token', 'casino chip', 'parking token', 'toll token',
        'telephone token', 'exonumia',
    ],
    'pins': [
        'enamel pin', 'lapel pin', 'pin badge', 'olympic pin', 'disney pin',
        'trading pin', 'hat pin', 'collector pin', 'souvenir pin', 'military pin',
    ],
    'patches': [
        'patch', 'embroidered patch', 'iron-on patch', 'sew-on patch',
        'military patch', 'scout patch', 'merit badge', 'morale patch',
        'unit patch', 'squadron patch',
    ],
    'stickers': [
        'sticker', 'decal', 'panini sticker', 'sticker album',
        'bumper sticker', 'vinyl sticker', 'die cut sticker',
        'sticker pack', 'collectible sticker',
    ],
    'keychains': [
        'keychain', 'key chain', 'key ring', 'keyring', 'key fob',
        'souvenir keychain', 'collector keychain',
    ],
    'magnets': [
        'magnet', 'fridge magnet', 'refrigerator magnet', 'souvenir magnet',
        'collector magnet', 'travel magnet',
    ],
    'tickets': [
        'ticket', 'concert ticket', 'event ticket', 'movie ticket',
        'ticket stub', 'admission ticket', 'lottery ticket',
        'transit ticket', 'airline ticket', 'vintage ticket',
    ],
    'phonecards': [
        'phone card', 'phonecard', 'calling card', 'telephone card',
        'prepaid phone', 'telecarte',
    ],
    'beer_coasters': [
        'beer coaster', 'beermat', 'beer mat', 'coaster', 'drink coaster',
        'brewery coaster', 'bar coaster',
    ],
    'bottlecaps': [
        'bottle cap', 'bottlecap', 'crown cap', 'beer cap',
        'soda cap', 'bottle top',
    ],
    'kids_meal_toys': [
        'happy meal', 'happy meal toy', 'mcdonalds toy', "mcdonald's toy",
        'kids meal toy', 'burger king toy', 'fast food toy',
        'cereal toy', 'kinder surprise', 'kinder egg',
    ],

    # ============================================================
    # APPAREL & FOOTWEAR
    # ============================================================
    'streetwear': [
        'supreme', 'supreme box logo', 'supreme hoodie', 'supreme tee',
        'bape', 'a bathing ape', 'bathing ape', 'bape hoodie', 'bape shark',
        'baby milo', 'off-white', 'off white', 'offwhite', 'virgil abloh',
        'fear of god', 'fog essentials', 'essentials hoodie',
        'kith', 'palace skateboards', 'palace hoodie', 'tri-ferg',
        'travis scott', 'cactus jack', 'astroworld',
        'yeezy gap', 'yzy gap', 'stussy', 'anti social social club', 'assc',
        'vlone', 'chrome hearts', 'gallery dept', 'rhude', 'amiri',
        'human made', 'drew house', 'corteiz', 'sp5der', 'hellstar',
        'broken planet', 'billionaire boys club', 'undefeated',
    ],
    'apparel': [
        'hoodie', 'hoody', 'sweatshirt', 'sweater', 'pullover', 'crewneck', 'crew neck',
        'jacket', 'coat', 'blazer', 'cardigan', 'windbreaker', 'parka', 'bomber jacket',
        'vest', 'fleece', 'zip up', 'quarter zip',
        't-shirt', 'polo', 'button up', 'button down', 'flannel',
        'tank top', 'long sleeve', 'short sleeve',
        'pants', 'jeans', 'shorts', 'joggers', 'sweatpants', 'track pants',
        'trousers', 'chinos', 'cargo pants', 'leggings', 'skirt',
        'dress', 'jumpsuit', 'overalls', 'tracksuit',
        'beanie', 'snapback', 'fitted cap', 'dad hat', 'trucker hat', 'bucket hat',
        'scarf', 'gloves', 'socks',
        'jersey', 'team jersey', 'basketball jersey', 'football jersey',
        'hockey jersey', 'baseball jersey', 'soccer jersey',
        'vintage tee', 'vintage shirt', 'band tee', 'concert tee', 'tour shirt',
        'graphic tee', 'varsity jacket', 'letterman jacket',
    ],
    'sneakers': [
        'sneaker', 'sneakers', 'kicks', 'trainers',
        'air jordan', 'jordan 1', 'jordan 3', 'jordan 4', 'jordan 11', 'jordan retro',
        'yeezy 350', 'yeezy 500', 'yeezy 700', 'yeezy slide',
        'nike dunk', 'dunk low', 'dunk high', 'sb dunk',
        'air force 1', 'af1', 'air max', 'air max 90', 'air max 97',
        'new balance 550', 'new balance 990',
        'adidas samba', 'adidas gazelle', 'adidas superstar', 'stan smith',
        'chuck taylor', 'vans old skool', 'asics gel', 'puma suede',
        'vnds', 'ds shoes', 'stockx', 'goat app',
    ],

    # ============================================================
    # RETAIL & VEHICLES
    # ============================================================
    'household': [
        'appliance', 'kitchen', 'blender', 'mixer', 'coffee maker', 'keurig', 'nespresso',
        'instant pot', 'air fryer', 'toaster', 'microwave', 'food processor', 'juicer',
        'vacuum', 'dyson', 'roomba', 'bissell', 'hoover', 'steam cleaner',
        'vitamix', 'cuisinart', 'kitchenaid', 'hamilton beach', 'black decker',
        'baby monitor', 'stroller', 'pack n play', 'high chair',
        'pet feeder', 'litter box', 'dog bed', 'cat tree',
        'new in box', 'factory sealed', 'unopened', 'amazon basics',
    ],
    'vehicles': [
        'vehicle', 'automobile', 'automotive', 'sedan', 'coupe', 'hatchback',
        'pickup truck', 'suv', 'minivan', 'motorcycle', 'motorbike',
        'odometer', 'mileage', 'carfax', 'clean title',
        'chevrolet', 'chevy', 'toyota', 'nissan', 'volkswagen', 'subaru',
        'hyundai', 'porsche', 'ferrari', 'lamborghini', 'maserati',
        'mustang', 'camaro', 'corvette', 'wrangler',
        'f-150', 'f150', 'silverado', 'ram 1500', 'tacoma', 'tundra',
        'camry', 'corolla', 'altima', 'cybertruck',
        'harley davidson', 'ducati', 'kawasaki',
    ],

    # ============================================================
    # COINS, LEGO, CARDS
    # ============================================================
    'coins': [
        'coin', 'penny', 'nickel', 'dime', 'cent',
        'morgan', 'buffalo nickel', 'wheat penny', 'mercury dime',
        'numismatic', 'uncirculated', 'silver dollar',
        'gold coin', 'half dollar', 'bullion', 'peace dollar',
        'walking liberty', 'standing liberty', 'seated liberty',
        'barber', 'indian head', 'flying eagle', 'trade dollar',
        'double eagle', 'gold eagle', 'silver eagle', 'platinum eagle',
        'krugerrand', 'maple leaf', 'britannia', 'philharmonic',
        'ancient coin', 'roman coin', 'greek coin', 'byzantine',
        'ms63', 'ms64', 'ms65', 'ms66', 'ms67', 'ms68', 'ms69', 'ms70',
        'pcgs', 'ngc', 'anacs', 'mint state', 'proof coin',
    ],
    'lego': [
        'lego', 'legos', 'minifig', 'minifigure',
        'star wars lego', 'technic', 'ninjago',
        'city lego', 'friends lego', 'duplo', 'bionicle',
        'batman lego', 'marvel lego', 'ideas lego', 'creator expert',
    ],
    'pokemon_cards': [
        'pokemon', 'pokémon', 'pikachu', 'charizard', 'blastoise', 'venusaur', 'mewtwo',
        'bulbasaur', 'charmander', 'squirtle', 'eevee', 'snorlax', 'gengar',
        'dragonite', 'gyarados', 'lugia', 'rayquaza', 'umbreon',
        'vmax', 'vstar', 'gx card', 'ex card', 'full art',
        'rainbow rare', 'secret rare', 'reverse holo', 'trainer gallery', 'alt art',
        'illustration rare', 'base set', 'team rocket',
    ],
    'trading_cards': [
        'trading card', 'tcg', 'foil card', 'graded card', 'booster pack',
        'booster box', 'beckett', 'card game',
    ],
    'sports_cards': [
        'topps', 'rookie card', 'sports card', 'baseball card',
        'football card', 'basketball card', 'hockey card', 'prizm',
        'donruss', 'bowman', 'upper deck',
    ],

    # ============================================================
    # MEDIA
    # ============================================================
    'books': [
        'book', 'novel', 'hardcover', 'paperback', 'first edition book',
        'signed copy', 'isbn', 'rare book', 'antique book',
        'leather bound', 'dust jacket', 'manuscript',
    ],
    'comics': [
        'comic', 'comic book', 'graphic novel', 'manga',
        'dc comics', 'spider-man', 'x-men',
        'first appearance', 'key issue', 'cbcs', 'graded comic',
        'golden age', 'silver age', 'bronze age', 'modern age',
        'variant cover', 'newsstand', 'direct edition',
    ],
    'video_games': [
        'video game', 'nintendo', 'playstation', 'xbox', 'ps5', 'ps4', 'ps3', 'ps2',
        'nintendo switch', 'gamecube', 'n64', 'snes', 'gameboy', 'game boy',
        'sega genesis', 'dreamcast', 'atari', 'pc game',
        'sealed game', 'complete in box', 'cartridge',
        'zelda', 'super mario', 'final fantasy', 'call of duty',
    ],
    'vinyl_records': [
        'vinyl', 'record', 'lp', 'album', '45 rpm', '33 rpm', '78 rpm',
        'first pressing', 'original pressing', 'limited edition vinyl',
        'picture disc', 'colored vinyl', 'audiophile',
        'discogs', 'rare vinyl', 'sealed vinyl',
    ],

    # ============================================================
    # ELECTRONICS, ACCESSORIES, GENERAL COLLECTIBLES
    # ============================================================
    'electronics': [
        'electronic', 'gadget', 'speaker', 'headphone', 'earbuds',
        'tablet', 'laptop', 'computer', 'monitor', 'keyboard',
        'smart home', 'alexa', 'google home', 'ring doorbell',
        'gopro', 'drone', 'camera', 'projector',
    ],
    'watches': ['watch', 'rolex', 'omega', 'seiko', 'casio', 'timepiece', 'wristwatch'],
    'jewelry': ['jewelry', 'necklace', 'bracelet', 'earring', 'diamond', 'pendant'],
    'toys': ['toy', 'doll', 'plush', 'stuffed animal'],
    'action_figures': ['action figure', 'statue', 'funko', 'pop vinyl', 'hot toys'],
    'collectibles': ['collectible', 'collector', 'limited edition'],
    'antiques': ['antique', 'victorian', 'art deco', 'edwardian'],
    'vintage': ['vintage', 'retro', 'mid-century'],
}
